from django.urls import path
from .views import (
    page_view_create, page_views_report, page_paths_report, summary_report,
    referrers_report, products_report, styling_report, raw_data_report,
)

urlpatterns = [
    path('page-views/', page_view_create, name='page-view-create'),

    # Admin analytics
    path('admin/analytics/page-views/', page_views_report, name='analytics-page-views'),
    path('admin/analytics/page-paths/', page_paths_report, name='analytics-page-paths'),
    path('admin/analytics/summary/', summary_report, name='analytics-summary'),
    path('admin/analytics/referrers/', referrers_report, name='analytics-referrers'),
    path('admin/analytics/products/', products_report, name='analytics-products'),
    path('admin/analytics/styling/', styling_report, name='analytics-styling'),
    path('admin/analytics/raw-data/', raw_data_report, name='analytics-raw-data'),
]
