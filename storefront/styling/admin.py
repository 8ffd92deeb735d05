from django.contrib import admin
from .models import Styling, StylingImage


class StylingImageInline(admin.TabularInline):
    model = StylingImage
    extra = 0


@admin.register(Styling)
class StylingAdmin(admin.ModelAdmin):
    list_display = ['title', 'slug', 'color', 'size', 'height', 'display_order', 'created_at']
    search_fields = ['title', 'slug', 'description']
    ordering = ['display_order', '-created_at']
    inlines = [StylingImageInline]
