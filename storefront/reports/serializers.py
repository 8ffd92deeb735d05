from rest_framework import serializers
from .models import PageView


class PageViewSerializer(serializers.ModelSerializer):
    page_title = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    referrer = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = PageView
        fields = ['id', 'page_path', 'page_title', 'session_id', 'referrer', 'created_at']

    def validate_page_title(self, value):
        return value or ''

    def validate_referrer(self, value):
        return value or 'direct'
