"""
Test suite for the analytics module
Tests: page view tracking, day clamping, summary, referrers, product and styling performance, raw data
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.reports import analytics
from storefront.reports.models import PageView
from storefront.shop.models import CartEvent


class PageViewTrackingTests(APITestCase):
    """Test the public page view endpoint"""

    def test_anonymous_page_view(self):
        response = self.client.post('/api/v1/page-views/', {
            'page_path': '/products/penny-loafer',
            'session_id': 'sess-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data, {'success': True})
        view = PageView.objects.get()
        self.assertIsNone(view.user)
        self.assertEqual(view.referrer, 'direct')

    def test_signed_in_page_view_is_attributed(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        self.client.post('/api/v1/page-views/', {
            'page_path': '/',
            'session_id': 'sess-2',
            'referrer': 'https://www.google.com/',
            'page_title': 'Home',
        }, format='json')
        view = PageView.objects.get()
        self.assertEqual(view.user, user)
        self.assertEqual(view.referrer, 'https://www.google.com/')

    def test_blank_referrer_becomes_direct(self):
        self.client.post('/api/v1/page-views/', {'page_path': '/', 'session_id': 's', 'referrer': ''}, format='json')
        self.assertEqual(PageView.objects.get().referrer, 'direct')

    def test_page_view_requires_path_and_session(self):
        response = self.client.post('/api/v1/page-views/', {'page_path': '/'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('session_id', response.data)


class AnalyticsFunctionTests(TestCase):
    """Test the aggregation helpers directly"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_clamp_days(self):
        self.assertEqual(analytics.clamp_days(None), 30)
        self.assertEqual(analytics.clamp_days(''), 30)
        self.assertEqual(analytics.clamp_days('0'), 1)
        self.assertEqual(analytics.clamp_days('1000'), 365)
        self.assertEqual(analytics.clamp_days('7'), 7)
        with self.assertRaises(ValueError):
            analytics.clamp_days('week')

    def test_page_views_outside_window_are_ignored(self):
        TestDataFactory.create_page_view('/', session_id='a')
        old = TestDataFactory.create_page_view('/', session_id='b')
        PageView.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=10))
        self.assertEqual(analytics.page_views_in_window(7).count(), 1)
        self.assertEqual(analytics.page_views_in_window(30).count(), 2)

    def test_page_views_by_day_counts_unique_sessions(self):
        TestDataFactory.create_page_view('/', session_id='a')
        TestDataFactory.create_page_view('/', session_id='a')
        TestDataFactory.create_page_view('/', session_id='b')
        TestDataFactory.create_page_view('/styling', session_id='a')

        rows = analytics.page_views_by_day(30)
        home = next(row for row in rows if row['page_path'] == '/')
        self.assertEqual((home['views'], home['unique_sessions']), (3, 2))

    def test_page_path_rollup(self):
        rows = [
            {'date': '2024-05-02', 'page_path': '/', 'views': 3, 'unique_sessions': 2},
            {'date': '2024-05-01', 'page_path': '/', 'views': 2, 'unique_sessions': 2},
            {'date': '2024-05-01', 'page_path': '/styling', 'views': 9, 'unique_sessions': 1},
        ]
        self.assertEqual(analytics.page_path_rollup(rows), [
            {'page_path': '/styling', 'views': 9, 'unique_sessions': 1},
            {'page_path': '/', 'views': 5, 'unique_sessions': 4},
        ])

    def test_summary(self):
        product = TestDataFactory.create_product()
        TestDataFactory.create_page_view('/', session_id='a')
        TestDataFactory.create_page_view('/', session_id='a')
        TestDataFactory.create_page_view('/', session_id='b')
        CartEvent.objects.create(user=self.user, product=product, action='add', quantity=2)
        CartEvent.objects.create(user=self.user, product=product, action='remove', quantity=2)
        TestDataFactory.create_order(self.user, items=[(product, 1)])
        TestDataFactory.create_order(self.user, items=[(product, 2)], status='shipped')

        data = analytics.summary(30)
        self.assertEqual(data['total_page_views'], 3)
        self.assertEqual(data['unique_visitors'], 2)
        self.assertEqual(data['cart_additions'], 2)
        self.assertEqual(data['total_orders'], 2)
        self.assertEqual(data['total_revenue'], 36000)
        self.assertEqual(data['total_products'], 1)
        self.assertEqual(data['orders_by_status'], {'pending': 1, 'shipped': 1})

    def test_referrer_breakdown(self):
        TestDataFactory.create_page_view('/', session_id='a', referrer='https://instagram.com/')
        TestDataFactory.create_page_view('/', session_id='b', referrer='https://instagram.com/')
        TestDataFactory.create_page_view('/', session_id='c')
        rows = analytics.referrer_breakdown(30)
        self.assertEqual(rows[0], {'referrer': 'https://instagram.com/', 'views': 2, 'unique_sessions': 2})
        self.assertEqual(rows[1]['referrer'], 'direct')

    def test_product_performance_excludes_cancelled_orders(self):
        loafer = TestDataFactory.create_product(name='Loafer')
        TestDataFactory.create_product(name='Belt')
        other = TestDataFactory.create_user()
        CartEvent.objects.create(user=self.user, product=loafer, action='add', quantity=1)
        CartEvent.objects.create(user=other, product=loafer, action='add', quantity=2)
        TestDataFactory.create_order(self.user, items=[(loafer, 2)])
        TestDataFactory.create_order(other, items=[(loafer, 5)], status='cancelled')

        rows = {row['name']: row for row in analytics.product_performance(30)}
        self.assertEqual(rows['Loafer']['cart_additions'], 3)
        self.assertEqual(rows['Loafer']['unique_cart_users'], 2)
        self.assertEqual(rows['Loafer']['purchases'], 2)
        self.assertEqual(rows['Loafer']['unique_purchasers'], 1)
        self.assertEqual(rows['Loafer']['revenue'], 24000)
        self.assertEqual(rows['Belt']['purchases'], 0)
        self.assertEqual(analytics.product_performance(30)[0]['name'], 'Loafer')

    def test_slug_from_styling_path(self):
        self.assertEqual(analytics.slug_from_styling_path('/styling/casual-style'), 'casual-style')
        self.assertEqual(analytics.slug_from_styling_path('/styling/casual-style/'), 'casual-style')
        self.assertIsNone(analytics.slug_from_styling_path('/styling/'))
        self.assertIsNone(analytics.slug_from_styling_path('/products/x'))

    def test_styling_performance(self):
        TestDataFactory.create_styling(slug='casual-style')
        TestDataFactory.create_styling(slug='formal-style')
        TestDataFactory.create_page_view('/styling/casual-style', session_id='a', user=self.user)
        TestDataFactory.create_page_view('/styling/casual-style', session_id='b')
        TestDataFactory.create_page_view('/styling/casual-style', session_id='b')

        rows = analytics.styling_performance(30)
        self.assertEqual(rows[0]['slug'], 'casual-style')
        self.assertEqual(rows[0]['views'], 3)
        self.assertEqual(rows[0]['unique_sessions'], 2)
        self.assertEqual(rows[0]['logged_in_users'], 1)
        self.assertEqual(rows[0]['anonymous_users'], 1)
        self.assertEqual(rows[1]['views'], 0)

    def test_raw_data(self):
        product = TestDataFactory.create_product(name='Loafer')
        TestDataFactory.create_page_view('/', session_id='a', user=self.user)
        CartEvent.objects.create(user=self.user, product=product, action='add', quantity=1)
        TestDataFactory.create_order(self.user, items=[(product, 2)])
        TestDataFactory.create_order(self.user, items=[(product, 1)], status='cancelled')

        data = analytics.raw_data(30)
        self.assertEqual(data['page_views'][0]['user_email'], self.user.email)
        self.assertEqual(data['cart_events'][0]['product_name'], 'Loafer')
        self.assertEqual(data['totals']['order_lines'], 2)
        self.assertEqual(data['totals']['orders_value'], 24000)


class AnalyticsEndpointTests(APITestCase):
    """Test the admin analytics endpoints"""

    def setUp(self):
        super().setUp()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_endpoints_respond(self):
        for name in ('page-views', 'page-paths', 'summary', 'referrers', 'products', 'styling', 'raw-data'):
            response = self.client.get(f'/api/v1/admin/analytics/{name}/?days=7')
            self.assertEqual(response.status_code, status.HTTP_200_OK, name)

    def test_invalid_days(self):
        response = self.client.get('/api/v1/admin/analytics/summary/?days=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_summary_is_cached_until_orders_change(self):
        product = TestDataFactory.create_product()
        first = self.client.get('/api/v1/admin/analytics/summary/')
        self.assertEqual(first.data['total_orders'], 0)

        # Page views do not invalidate the reports cache
        TestDataFactory.create_page_view('/')
        cached = self.client.get('/api/v1/admin/analytics/summary/')
        self.assertEqual(cached.data['total_page_views'], 0)

        TestDataFactory.create_order(TestDataFactory.create_user(), items=[(product, 1)])
        fresh = self.client.get('/api/v1/admin/analytics/summary/')
        self.assertEqual(fresh.data['total_orders'], 1)
        self.assertEqual(fresh.data['total_page_views'], 1)

    def test_customer_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/analytics/summary/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
