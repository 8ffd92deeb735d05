"""
URL configuration for the storefront project.

Every app mounts its routes under /api/v1/ so the storefront client can use a
single base URL for public, customer, wardrobe and admin endpoints.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Loafer Storefront Admin"
admin.site.site_title = "Loafer Storefront Admin Portal"
admin.site.index_title = "Back office"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('storefront.core.urls')),
    path('api/v1/', include('storefront.catalog.urls')),
    path('api/v1/', include('storefront.styling.urls')),
    path('api/v1/', include('storefront.shop.urls')),
    path('api/v1/', include('storefront.reports.urls')),
    path('api/v1/', include('storefront.wardrobe.urls')),
]
