from django.contrib import admin
from .models import PageView


@admin.register(PageView)
class PageViewAdmin(admin.ModelAdmin):
    list_display = ['page_path', 'page_title', 'user', 'session_id', 'referrer', 'created_at']
    list_filter = ['created_at']
    search_fields = ['page_path', 'session_id', 'referrer']
    ordering = ['-created_at']
