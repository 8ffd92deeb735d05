from rest_framework import serializers
from .models import Styling, StylingImage

STYLING_WRITE_FIELDS = ['title', 'description', 'image_url', 'color', 'size', 'height', 'slug', 'display_order']


class StylingImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = StylingImage
        fields = ['id', 'styling_id', 'url', 'display_order', 'created_at']
        read_only_fields = ['styling_id']


class StylingSerializer(serializers.ModelSerializer):
    styling_images = StylingImageSerializer(many=True, read_only=True)

    class Meta:
        model = Styling
        fields = ['id', 'title', 'description', 'image_url', 'color', 'size', 'height', 'slug',
                  'display_order', 'styling_images', 'created_at', 'updated_at']
