from django.urls import path
from .views import (
    category_list, category_detail, product_list, product_detail,
    admin_product_create, admin_product_detail, admin_product_move,
    admin_product_variants, admin_variant_detail,
    admin_product_images, admin_image_delete,
)

urlpatterns = [
    # Public catalog
    path('categories/', category_list, name='category-list'),
    path('categories/<slug:slug>/', category_detail, name='category-detail'),
    path('products/', product_list, name='product-list'),
    path('products/<slug:slug>/', product_detail, name='product-detail'),

    # Admin products
    path('admin/products/', admin_product_create, name='admin-product-create'),
    path('admin/products/<int:pk>/', admin_product_detail, name='admin-product-detail'),
    path('admin/products/<int:pk>/move/', admin_product_move, name='admin-product-move'),

    # Admin variants
    path('admin/products/<int:pk>/variants/', admin_product_variants, name='admin-product-variants'),
    path('admin/variants/<int:pk>/', admin_variant_detail, name='admin-variant-detail'),

    # Admin images
    path('admin/products/<int:pk>/images/', admin_product_images, name='admin-product-images'),
    path('admin/images/<int:pk>/', admin_image_delete, name='admin-image-delete'),
]
