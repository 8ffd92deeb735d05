"""
Portfolio and sales analysis over a user's wardrobe.

All functions work on plain iterables of WardrobeItem rows and take ``today``
explicitly, so the same code serves the API views and the tests.
"""
import calendar
import math
from collections import Counter, defaultdict
from datetime import date

DEFAULT_CATEGORY = 'その他'
UNKNOWN = 'Unknown'
TOP_BRANDS = 8
TOP_COLORS = 8
TOP_SALES_BRANDS = 6
MATURE_AFTER_MONTHS = 6
UNWORN_MARKERS = ('未着用', 'タグ付き', '新品')

PRICE_RANGES = [
    ('〜¥10,000', 0, 10000),
    ('¥10,001〜¥30,000', 10001, 30000),
    ('¥30,001〜¥50,000', 30001, 50000),
    ('¥50,001〜¥100,000', 50001, 100000),
    ('¥100,001〜', 100001, None),
]

# Months to look back for each sales range; None means all time
SALES_RANGES = {
    '1M': 1,
    '3M': 3,
    '6M': 6,
    '1Y': 12,
    '3Y': 36,
    'ALL': None,
}


def round_half_up(value):
    """Round halves toward positive infinity"""
    return int(math.floor(value + 0.5))


def shift_months(day, months):
    """Move ``day`` back by ``months`` calendar months, clamping the day of month"""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def active_items(items):
    return [item for item in items if not item.is_discarded and not item.is_sold]


def sold_items(items):
    return [item for item in items if item.is_sold and not item.is_discarded]


def ranked_counts(values, limit=None):
    ranked = sorted(Counter(values).items(), key=lambda pair: (-pair[1], pair[0]))
    if limit is not None:
        ranked = ranked[:limit]
    return [{'name': name, 'value': value} for name, value in ranked]


def ranked_sums(pairs, limit=None):
    totals = defaultdict(int)
    for name, amount in pairs:
        totals[name] += amount
    ranked = sorted(totals.items(), key=lambda pair: (-pair[1], pair[0]))
    if limit is not None:
        ranked = ranked[:limit]
    return [{'name': name, 'value': value} for name, value in ranked]


def price_range_counts(items):
    results = []
    for label, low, high in PRICE_RANGES:
        count = sum(
            1 for item in items
            if (item.purchase_price or 0) >= low and (high is None or (item.purchase_price or 0) <= high)
        )
        results.append({'label': label, 'min': low, 'max': high, 'count': count})
    return results


def category_average_prices(items):
    totals = defaultdict(lambda: [0, 0])
    for item in items:
        if item.purchase_price:
            entry = totals[item.category or DEFAULT_CATEGORY]
            entry[0] += item.purchase_price
            entry[1] += 1
    results = [
        {'name': name, 'avg_price': round_half_up(total / count)}
        for name, (total, count) in totals.items()
    ]
    results.sort(key=lambda row: (-row['avg_price'], row['name']))
    return results


def filter_sold_in_range(items, range_key, today):
    if range_key not in SALES_RANGES:
        raise ValueError(f"Unknown range: {range_key}")
    months = SALES_RANGES[range_key]
    if months is None:
        return list(items)
    start = shift_months(today, months)
    return [item for item in items if item.sold_date and item.sold_date >= start]


def yearly_sales(items):
    totals = defaultdict(int)
    for item in items:
        if item.sold_date and item.sold_price:
            totals[item.sold_date.year] += item.sold_price
    return [{'year': str(year), 'amount': totals[year]} for year in sorted(totals)]


def wear_analysis(items, today):
    """
    Items bought more than six months ago (or with no purchase date) count as
    having had a chance to be worn; their notes decide if they are unworn.
    """
    cutoff = shift_months(today, MATURE_AFTER_MONTHS)
    mature = [item for item in items if item.purchase_date is None or item.purchase_date < cutoff]
    unworn = [
        item for item in mature
        if any(marker in (item.notes or '').lower() for marker in UNWORN_MARKERS)
    ]
    total = len(mature)
    unworn_count = len(unworn)
    return {
        'total': total,
        'worn_count': total - unworn_count,
        'unworn_count': unworn_count,
        'unworn_rate': round_half_up(unworn_count / total * 100) if total else 0,
    }


def portfolio_analysis(items, range_key='ALL', today=None):
    today = today or date.today()
    items = list(items)
    active = active_items(items)
    sold = sold_items(items)
    sold_in_range = filter_sold_in_range(sold, range_key, today)

    return {
        'range': range_key,
        'total_items': len(active),
        'total_value': sum(item.purchase_price or 0 for item in active),
        'sold_count': len(sold),
        'category_counts': ranked_counts(item.category or DEFAULT_CATEGORY for item in active),
        'brand_counts': ranked_counts((item.brand or UNKNOWN for item in active), TOP_BRANDS),
        'color_counts': ranked_counts((item.color or UNKNOWN for item in active), TOP_COLORS),
        'price_ranges': price_range_counts(active),
        'category_avg_prices': category_average_prices(active),
        'yearly_sales': yearly_sales(sold),
        'category_sales': ranked_sums(
            (item.category or DEFAULT_CATEGORY, item.sold_price) for item in sold_in_range if item.sold_price
        ),
        'brand_sales': ranked_sums(
            ((item.brand or UNKNOWN, item.sold_price) for item in sold_in_range if item.sold_price),
            TOP_SALES_BRANDS,
        ),
        'wear_analysis': wear_analysis(active, today),
    }


def monthly_sales(items, today, months=12):
    """Sold amount and count for each of the trailing ``months`` months, oldest first"""
    results = []
    for offset in range(months - 1, -1, -1):
        month_start = shift_months(today.replace(day=1), offset)
        month_items = [
            item for item in items
            if item.sold_date
            and item.sold_date.year == month_start.year
            and item.sold_date.month == month_start.month
        ]
        results.append({
            'month': f"{month_start.year}/{month_start.month}",
            'amount': sum(item.sold_price or 0 for item in month_items),
            'count': len(month_items),
        })
    return results


def sales_analysis(items, today=None):
    today = today or date.today()
    sold = sold_items(items)

    total_count = len(sold)
    total_amount = sum(item.sold_price or 0 for item in sold)
    total_cost = sum(item.purchase_price or 0 for item in sold)
    total_profit = total_amount - total_cost

    return {
        'total_sold_count': total_count,
        'total_sold_amount': total_amount,
        'average_sold_price': round_half_up(total_amount / total_count) if total_count else 0,
        'total_cost': total_cost,
        'total_profit': total_profit,
        'profit_margin': round_half_up(total_profit / total_cost * 100) if total_cost else 0,
        'monthly_sales': monthly_sales(sold, today),
    }


def export_rows(items):
    """Flat rows for spreadsheet export, one per item"""
    rows = []
    for item in items:
        if item.is_discarded:
            status = 'discarded'
        elif item.is_sold:
            status = 'sold'
        else:
            status = 'active'
        rows.append({
            'id': item.id,
            'name': item.name,
            'brand': item.brand or '',
            'product_number': item.product_number or '',
            'category': item.category or '',
            'size': item.size or '',
            'color': item.color or '',
            'wear_scene': item.wear_scene or '',
            'purchase_date': item.purchase_date.isoformat() if item.purchase_date else '',
            'purchase_price': item.purchase_price,
            'currency': item.currency or '',
            'purchase_location': item.purchase_location or '',
            'status': status,
            'sold_date': item.sold_date.isoformat() if item.sold_date else '',
            'sold_price': item.sold_price,
            'sold_location': item.sold_location or '',
            'notes': item.notes or '',
            'created_at': item.created_at.isoformat() if item.created_at else '',
        })
    return rows
