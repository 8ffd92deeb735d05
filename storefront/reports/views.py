import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from storefront.core.cache_utils import REPORTS_CACHE_TTL, get_or_build
from . import analytics
from .serializers import PageViewSerializer

logger = logging.getLogger('storefront.reports')


@api_view(['POST'])
@permission_classes([AllowAny])
def page_view_create(request):
    """Record a storefront page view; the caller is attached when signed in"""
    serializer = PageViewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = request.user if request.user and request.user.is_authenticated else None
    serializer.save(user=user)
    return Response({'success': True}, status=status.HTTP_201_CREATED)


def cached_report(request, name, builder):
    """Run ``builder(days)`` for ?days= through the reports cache"""
    try:
        days = analytics.clamp_days(request.query_params.get('days'))
    except (TypeError, ValueError):
        return Response({'error': 'days must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        data = get_or_build(f'reports_{name}', lambda: builder(days), REPORTS_CACHE_TTL, days=days)
    except Exception as e:
        logger.error(f"Error building {name} report for {days} days: {str(e)}", exc_info=True)
        return Response({'error': f'Failed to build {name} report'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def page_views_report(request):
    """Views and unique sessions per day and page"""
    return cached_report(request, 'page_views', analytics.page_views_by_day)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def page_paths_report(request):
    """Per-page totals across the window"""
    return cached_report(
        request, 'page_paths', lambda days: analytics.page_path_rollup(analytics.page_views_by_day(days))
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def summary_report(request):
    return cached_report(request, 'summary', analytics.summary)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def referrers_report(request):
    return cached_report(request, 'referrers', analytics.referrer_breakdown)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def products_report(request):
    return cached_report(request, 'products', analytics.product_performance)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def styling_report(request):
    return cached_report(request, 'styling', analytics.styling_performance)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def raw_data_report(request):
    """Flat rows for spreadsheet export; never cached"""
    try:
        days = analytics.clamp_days(request.query_params.get('days'))
    except (TypeError, ValueError):
        return Response({'error': 'days must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(analytics.raw_data(days))
