from django.urls import path
from .views import (
    item_list_create, item_detail, item_sell, item_discard, item_restore,
    styling_photo_list_create, styling_photo_delete,
    foot_measurement_list_create, foot_measurement_detail,
    brand_size_mapping_list_create, brand_size_mapping_detail,
    size_recommendation, portfolio_analysis, sales_analysis, export_items,
    scrape_url, extract_tag, analyze_image, ai_chat, wardrobe_upload_url,
)

urlpatterns = [
    # Items
    path('wardrobe/items/', item_list_create, name='wardrobe-item-list-create'),
    path('wardrobe/items/<int:pk>/', item_detail, name='wardrobe-item-detail'),
    path('wardrobe/items/<int:pk>/sell/', item_sell, name='wardrobe-item-sell'),
    path('wardrobe/items/<int:pk>/discard/', item_discard, name='wardrobe-item-discard'),
    path('wardrobe/items/<int:pk>/restore/', item_restore, name='wardrobe-item-restore'),

    # Styling photos
    path('wardrobe/styling-photos/', styling_photo_list_create, name='wardrobe-styling-photo-list-create'),
    path('wardrobe/styling-photos/<int:pk>/', styling_photo_delete, name='wardrobe-styling-photo-delete'),

    # Sizing
    path('wardrobe/foot-measurements/', foot_measurement_list_create, name='foot-measurement-list-create'),
    path('wardrobe/foot-measurements/<int:pk>/', foot_measurement_detail, name='foot-measurement-detail'),
    path('wardrobe/brand-size-mappings/', brand_size_mapping_list_create, name='brand-size-mapping-list-create'),
    path('wardrobe/brand-size-mappings/<int:pk>/', brand_size_mapping_detail, name='brand-size-mapping-detail'),
    path('wardrobe/size-recommendation/', size_recommendation, name='size-recommendation'),

    # Analysis
    path('wardrobe/analysis/portfolio/', portfolio_analysis, name='wardrobe-portfolio-analysis'),
    path('wardrobe/analysis/sales/', sales_analysis, name='wardrobe-sales-analysis'),
    path('wardrobe/export/', export_items, name='wardrobe-export'),

    # AI recognition
    path('wardrobe/scrape-url/', scrape_url, name='wardrobe-scrape-url'),
    path('wardrobe/extract-tag/', extract_tag, name='wardrobe-extract-tag'),
    path('wardrobe/analyze-image/', analyze_image, name='wardrobe-analyze-image'),
    path('wardrobe/ai-chat/', ai_chat, name='wardrobe-ai-chat'),

    path('wardrobe/upload-url/', wardrobe_upload_url, name='wardrobe-upload-url'),
]
