from django.contrib import admin
from .models import WardrobeItem, StylingPhoto, StylingPhotoItem, FootMeasurement, BrandSizeMapping


@admin.register(WardrobeItem)
class WardrobeItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'brand', 'category', 'owner', 'purchase_price', 'is_sold', 'is_discarded', 'created_at']
    list_filter = ['category', 'is_sold', 'is_discarded', 'wear_scene']
    search_fields = ['name', 'brand', 'product_number', 'owner__email']
    raw_id_fields = ['owner']


class StylingPhotoItemInline(admin.TabularInline):
    model = StylingPhotoItem
    extra = 0
    raw_id_fields = ['wardrobe_item']


@admin.register(StylingPhoto)
class StylingPhotoAdmin(admin.ModelAdmin):
    list_display = ['id', 'title', 'owner', 'created_at']
    search_fields = ['title', 'owner__email']
    raw_id_fields = ['owner']
    inlines = [StylingPhotoItemInline]


@admin.register(FootMeasurement)
class FootMeasurementAdmin(admin.ModelAdmin):
    list_display = ['owner', 'foot_type', 'length_mm', 'width_mm', 'is_active', 'measurement_date']
    list_filter = ['foot_type', 'is_active']


@admin.register(BrandSizeMapping)
class BrandSizeMappingAdmin(admin.ModelAdmin):
    list_display = ['owner', 'brand_name', 'size_system', 'size', 'fit_rating', 'comfort_rating']
    search_fields = ['brand_name', 'owner__email']
