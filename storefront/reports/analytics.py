"""
Aggregations behind the admin analytics dashboard.

Every function takes the window length in days and returns plain
JSON-serialisable structures so the views can cache them as-is.
"""
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db.models import Count, F, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from storefront.catalog.models import Product
from storefront.shop.models import CartEvent, Order, OrderItem
from storefront.styling.models import Styling
from .models import PageView

DEFAULT_DAYS = 30
MAX_DAYS = 365
STYLING_PATH_PREFIX = '/styling/'


def clamp_days(value):
    """Parse ``?days=`` into 1..365; raises ValueError when not an integer"""
    if value in (None, ''):
        return DEFAULT_DAYS
    return max(1, min(MAX_DAYS, int(value)))


def window_start(days):
    return timezone.now() - timedelta(days=days)


def page_views_in_window(days):
    return PageView.objects.filter(created_at__gte=window_start(days))


def page_views_by_day(days):
    """Views and unique sessions per (date, page_path), newest date first"""
    rows = (
        page_views_in_window(days)
        .annotate(date=TruncDate('created_at'))
        .values('date', 'page_path')
        .annotate(views=Count('id'), unique_sessions=Count('session_id', distinct=True))
        .order_by('-date', '-views', 'page_path')
    )
    return [
        {
            'date': row['date'].isoformat(),
            'page_path': row['page_path'],
            'views': row['views'],
            'unique_sessions': row['unique_sessions'],
        }
        for row in rows
    ]


def page_path_rollup(daily_rows):
    """
    Collapse per-day rows into one row per path.

    unique_sessions is the sum of the daily distinct counts, so a session that
    returns on another day is counted again.
    """
    totals = {}
    for row in daily_rows:
        entry = totals.setdefault(row['page_path'], {'page_path': row['page_path'], 'views': 0, 'unique_sessions': 0})
        entry['views'] += int(row['views'])
        entry['unique_sessions'] += int(row['unique_sessions'])
    return sorted(totals.values(), key=lambda entry: (-entry['views'], entry['page_path']))


def summary(days):
    views = page_views_in_window(days)
    cart_additions = CartEvent.objects.filter(
        action='add', created_at__gte=window_start(days)
    ).aggregate(total=Sum('quantity'))['total']

    return {
        'days': days,
        'total_page_views': views.count(),
        'unique_visitors': views.values('session_id').distinct().count(),
        'total_orders': Order.objects.count(),
        'total_revenue': Order.objects.aggregate(total=Sum('total_amount'))['total'] or 0,
        'total_products': Product.objects.count(),
        'total_users': get_user_model().objects.count(),
        'cart_additions': cart_additions or 0,
        'orders_by_status': orders_by_status(),
    }


def referrer_breakdown(days):
    rows = (
        page_views_in_window(days)
        .values('referrer')
        .annotate(views=Count('id'), unique_sessions=Count('session_id', distinct=True))
        .order_by('-views', 'referrer')
    )
    return [
        {
            'referrer': row['referrer'] or 'direct',
            'views': row['views'],
            'unique_sessions': row['unique_sessions'],
        }
        for row in rows
    ]


def product_performance(days):
    """Cart and purchase activity per product; cancelled orders are excluded"""
    start = window_start(days)

    cart_stats = {
        row['product_id']: row
        for row in CartEvent.objects.filter(action='add', created_at__gte=start)
        .values('product_id')
        .annotate(cart_additions=Sum('quantity'), unique_cart_users=Count('user_id', distinct=True))
    }
    purchase_stats = {
        row['product_id']: row
        for row in OrderItem.objects.filter(order__created_at__gte=start, product__isnull=False)
        .exclude(order__status='cancelled')
        .values('product_id')
        .annotate(
            purchases=Sum('quantity'),
            unique_purchasers=Count('order__user_id', distinct=True),
            revenue=Sum(F('product_price') * F('quantity')),
        )
    }

    results = []
    for product in Product.objects.only('id', 'name', 'slug'):
        cart = cart_stats.get(product.id, {})
        purchase = purchase_stats.get(product.id, {})
        results.append({
            'product_id': product.id,
            'name': product.name,
            'slug': product.slug,
            'cart_additions': cart.get('cart_additions') or 0,
            'unique_cart_users': cart.get('unique_cart_users') or 0,
            'purchases': purchase.get('purchases') or 0,
            'unique_purchasers': purchase.get('unique_purchasers') or 0,
            'revenue': purchase.get('revenue') or 0,
        })
    results.sort(key=lambda row: (-row['revenue'], -row['cart_additions'], row['name']))
    return results


def slug_from_styling_path(page_path):
    """'/styling/casual-style' -> 'casual-style'; None for other paths"""
    if not page_path.startswith(STYLING_PATH_PREFIX):
        return None
    slug = page_path[len(STYLING_PATH_PREFIX):].strip('/').split('/')[0]
    return slug or None


def styling_performance(days):
    """Views of each lookbook entry split by signed-in and anonymous visitors"""
    stats = {}
    views = page_views_in_window(days).filter(page_path__startswith=STYLING_PATH_PREFIX)
    for page_path, session_id, user_id in views.values_list('page_path', 'session_id', 'user_id'):
        slug = slug_from_styling_path(page_path)
        if slug is None:
            continue
        entry = stats.setdefault(slug, {'views': 0, 'sessions': set(), 'users': set(), 'anonymous': set()})
        entry['views'] += 1
        entry['sessions'].add(session_id)
        if user_id is None:
            entry['anonymous'].add(session_id)
        else:
            entry['users'].add(user_id)

    results = []
    for styling in Styling.objects.only('id', 'title', 'slug'):
        entry = stats.get(styling.slug)
        results.append({
            'styling_id': styling.id,
            'title': styling.title,
            'slug': styling.slug,
            'views': entry['views'] if entry else 0,
            'unique_sessions': len(entry['sessions']) if entry else 0,
            'logged_in_users': len(entry['users']) if entry else 0,
            'anonymous_users': len(entry['anonymous']) if entry else 0,
        })
    results.sort(key=lambda row: (-row['views'], row['slug']))
    return results


def raw_data(days):
    """Flat rows for client-side spreadsheet export"""
    start = window_start(days)

    page_views = [
        {
            'created_at': view.created_at.isoformat(),
            'page_path': view.page_path,
            'page_title': view.page_title,
            'session_id': view.session_id,
            'user_email': view.user.email if view.user else None,
            'referrer': view.referrer,
        }
        for view in page_views_in_window(days).select_related('user').order_by('created_at')
    ]
    cart_events = [
        {
            'created_at': event.created_at.isoformat(),
            'action': event.action,
            'product_name': event.product.name,
            'size': event.variant.size if event.variant else None,
            'quantity': event.quantity,
            'user_email': event.user.email if event.user else None,
        }
        for event in CartEvent.objects.filter(created_at__gte=start)
        .select_related('product', 'variant', 'user').order_by('created_at')
    ]
    order_lines = [
        {
            'order_id': item.order_id,
            'created_at': item.order.created_at.isoformat(),
            'status': item.order.status,
            'user_email': item.order.user.email if item.order.user else None,
            'product_name': item.product_name,
            'size': item.variant_size,
            'unit_price': item.product_price,
            'quantity': item.quantity,
            'line_total': item.line_total,
        }
        for item in OrderItem.objects.filter(order__created_at__gte=start)
        .select_related('order', 'order__user').order_by('order__created_at', 'id')
    ]

    return {
        'days': days,
        'page_views': page_views,
        'cart_events': cart_events,
        'order_lines': order_lines,
        'totals': {
            'page_views': len(page_views),
            'cart_events': len(cart_events),
            'order_lines': len(order_lines),
            'orders_value': sum(row['line_total'] for row in order_lines if row['status'] != 'cancelled'),
        },
    }


def orders_by_status():
    return {
        row['status']: row['count']
        for row in Order.objects.values('status').annotate(count=Count('id'))
    }


