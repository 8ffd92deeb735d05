"""
Test suite for the wardrobe module
Tests: item lifecycle, styling photos, sizing, portfolio and sales analysis, Gemini-backed recognition
"""
import base64
import io
import socket
from datetime import date
from decimal import Decimal
from unittest import mock

import requests
from django.test import SimpleTestCase, TestCase, override_settings
from PIL import Image
from rest_framework import status

from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.wardrobe import analysis, gemini_service
from storefront.wardrobe.models import WardrobeItem, StylingPhoto, FootMeasurement, BrandSizeMapping
from storefront.wardrobe.sizing import recommend_size


def png_base64():
    buffer = io.BytesIO()
    Image.new('RGB', (2, 2), color='navy').save(buffer, format='PNG')
    return base64.b64encode(buffer.getvalue()).decode()


def gemini_reply(text):
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {'candidates': [{'content': {'parts': [{'text': text}]}}]}
    return response


def page_response(body=b'', location=None):
    response = mock.MagicMock()
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    response.is_redirect = location is not None
    response.headers = {'Location': location} if location else {}
    response.raise_for_status.return_value = None
    response.iter_content.return_value = [body]
    return response


PUBLIC_ADDRESS = [(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, '', ('93.184.216.34', 443))]


class AnalysisHelperTests(SimpleTestCase):
    """Test rounding and month arithmetic"""

    def test_round_half_up(self):
        self.assertEqual(analysis.round_half_up(2.5), 3)
        self.assertEqual(analysis.round_half_up(2.4), 2)
        self.assertEqual(analysis.round_half_up(-2.5), -2)

    def test_shift_months_clamps_day(self):
        self.assertEqual(analysis.shift_months(date(2024, 3, 31), 1), date(2024, 2, 29))
        self.assertEqual(analysis.shift_months(date(2023, 3, 31), 1), date(2023, 2, 28))
        self.assertEqual(analysis.shift_months(date(2023, 1, 15), 1), date(2022, 12, 15))
        self.assertEqual(analysis.shift_months(date(2024, 5, 31), 12), date(2023, 5, 31))

    def test_filter_sold_in_range_rejects_unknown_range(self):
        with self.assertRaises(ValueError):
            analysis.filter_sold_in_range([], '2W', date(2024, 1, 1))


class PortfolioAnalysisTests(SimpleTestCase):
    """Test the portfolio and sales aggregations on unsaved items"""

    def setUp(self):
        self.today = date(2024, 3, 31)
        self.items = [
            WardrobeItem(name='Oxford shirt', category='トップス', brand='Comme', color='Navy',
                         purchase_price=8000, purchase_date=date(2023, 1, 1), notes='未着用のまま'),
            WardrobeItem(name='Knit', category='トップス', brand='Comme', color='Black',
                         purchase_price=20000, purchase_date=date(2024, 3, 1)),
            WardrobeItem(name='Scarf'),
            WardrobeItem(name='Denim', category='パンツ', brand='Levi', purchase_price=10000,
                         is_sold=True, sold_date=date(2024, 3, 10), sold_price=15000),
            WardrobeItem(name='Old tee', category='トップス', brand='Comme', purchase_price=8000,
                         is_sold=True, sold_date=date(2022, 6, 1), sold_price=5000),
            WardrobeItem(name='Worn out', category='シューズ', purchase_price=30000, is_discarded=True),
        ]

    def test_portfolio_counts_active_items(self):
        data = analysis.portfolio_analysis(self.items, '1M', today=self.today)
        self.assertEqual(data['range'], '1M')
        self.assertEqual(data['total_items'], 3)
        self.assertEqual(data['total_value'], 28000)
        self.assertEqual(data['sold_count'], 2)
        self.assertEqual(data['category_counts'], [
            {'name': 'トップス', 'value': 2},
            {'name': 'その他', 'value': 1},
        ])
        self.assertEqual(data['brand_counts'], [
            {'name': 'Comme', 'value': 2},
            {'name': 'Unknown', 'value': 1},
        ])
        self.assertEqual([row['count'] for row in data['price_ranges']], [2, 1, 0, 0, 0])
        self.assertEqual(data['category_avg_prices'], [{'name': 'トップス', 'avg_price': 14000}])

    def test_portfolio_sales_respect_range(self):
        data = analysis.portfolio_analysis(self.items, '1M', today=self.today)
        self.assertEqual(data['yearly_sales'], [
            {'year': '2022', 'amount': 5000},
            {'year': '2024', 'amount': 15000},
        ])
        self.assertEqual(data['category_sales'], [{'name': 'パンツ', 'value': 15000}])
        self.assertEqual(data['brand_sales'], [{'name': 'Levi', 'value': 15000}])

        all_time = analysis.portfolio_analysis(self.items, 'ALL', today=self.today)
        self.assertEqual(all_time['brand_sales'], [
            {'name': 'Levi', 'value': 15000},
            {'name': 'Comme', 'value': 5000},
        ])

    def test_wear_analysis(self):
        data = analysis.portfolio_analysis(self.items, today=self.today)
        self.assertEqual(data['wear_analysis'], {
            'total': 2,
            'worn_count': 1,
            'unworn_count': 1,
            'unworn_rate': 50,
        })

    def test_brand_counts_are_capped(self):
        items = [WardrobeItem(name=f'Item {i}', brand=f'Brand {i}') for i in range(10)]
        data = analysis.portfolio_analysis(items, today=self.today)
        self.assertEqual(len(data['brand_counts']), analysis.TOP_BRANDS)

    def test_sales_analysis(self):
        data = analysis.sales_analysis(self.items, today=self.today)
        self.assertEqual(data['total_sold_count'], 2)
        self.assertEqual(data['total_sold_amount'], 20000)
        self.assertEqual(data['average_sold_price'], 10000)
        self.assertEqual(data['total_cost'], 18000)
        self.assertEqual(data['total_profit'], 2000)
        self.assertEqual(data['profit_margin'], 11)
        self.assertEqual(len(data['monthly_sales']), 12)
        self.assertEqual(data['monthly_sales'][0]['month'], '2023/4')
        self.assertEqual(data['monthly_sales'][-1], {'month': '2024/3', 'amount': 15000, 'count': 1})

    def test_sales_analysis_without_sales(self):
        data = analysis.sales_analysis([], today=self.today)
        self.assertEqual(data['average_sold_price'], 0)
        self.assertEqual(data['profit_margin'], 0)

    def test_export_rows_status(self):
        rows = analysis.export_rows(self.items)
        self.assertEqual([row['status'] for row in rows], ['active', 'active', 'active', 'sold', 'sold', 'discarded'])
        self.assertEqual(rows[0]['purchase_date'], '2023-01-01')
        self.assertEqual(rows[2]['brand'], '')


class SizingTests(TestCase):
    """Test shoe size recommendation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_recommendation_from_active_measurement(self):
        TestDataFactory.create_foot_measurement(self.user, length_mm=Decimal('240.0'), is_active=False)
        TestDataFactory.create_foot_measurement(self.user, length_mm=Decimal('255.0'))
        result = recommend_size(
            'Alden Cordovan Loafer',
            FootMeasurement.objects.filter(owner=self.user),
            BrandSizeMapping.objects.filter(owner=self.user),
        )
        self.assertEqual(result['brand_name'], 'Alden')
        self.assertEqual(result['model_name'], 'Alden Cordovan Loafer')
        self.assertEqual(result['recommended_size'], '27cm')
        self.assertEqual(result['confidence_score'], 70)
        self.assertEqual(result['reasoning'], '足長 25.5cm を基に、27cm をお勧めします。')
        self.assertEqual(
            [alt['size'] for alt in result['alternative_sizes']],
            ['26.5cm', '27.5cm'],
        )

    def test_recommendation_defaults_without_measurement(self):
        TestDataFactory.create_brand_size_mapping(self.user)
        result = recommend_size('Loafer', [], BrandSizeMapping.objects.filter(owner=self.user))
        self.assertEqual(result['recommended_size'], '27cm')
        self.assertEqual(result['confidence_score'], 85)
        self.assertIn('26.0cm', result['reasoning'])


class GeminiServiceTests(SimpleTestCase):
    """Test reply parsing and image decoding"""

    def test_extract_json_from_fenced_reply(self):
        text = 'Here you go:\n```json\n{"brand": "Alden", "size": "8"}\n```'
        self.assertEqual(gemini_service.extract_json(text), {'brand': 'Alden', 'size': '8'})

    def test_extract_json_without_object(self):
        with self.assertRaises(gemini_service.GeminiError):
            gemini_service.extract_json('no json here')

    def test_decode_image_detects_mime_type(self):
        raw, mime_type = gemini_service.decode_image(f'data:image/jpeg;base64,{png_base64()}')
        self.assertEqual(mime_type, 'image/png')
        self.assertFalse(raw.startswith('data:'))

    def test_decode_image_rejects_decompression_bombs(self):
        # 2x2 exceeds twice the limit, 1x2 only the limit itself
        with mock.patch.object(Image, 'MAX_IMAGE_PIXELS', 1):
            with self.assertRaises(gemini_service.InvalidImageError):
                gemini_service.decode_image(png_base64())

        buffer = io.BytesIO()
        Image.new('1', (1, 2)).save(buffer, format='PNG')
        with mock.patch.object(Image, 'MAX_IMAGE_PIXELS', 1):
            with self.assertRaises(gemini_service.InvalidImageError):
                gemini_service.decode_image(base64.b64encode(buffer.getvalue()).decode())

    @mock.patch('storefront.wardrobe.gemini_service.requests.get')
    @mock.patch('storefront.wardrobe.gemini_service.socket.getaddrinfo', return_value=PUBLIC_ADDRESS)
    def test_fetch_page_text_stops_reading_at_size_cap(self, getaddrinfo, get):
        chunks = iter([b'<p>' + b'a' * (1024 * 1024)] * 10)
        page = page_response()
        page.iter_content.return_value = chunks
        get.return_value = page

        text, og_image = gemini_service.fetch_page_text('https://shop.example.com/huge')
        self.assertLessEqual(len(text), gemini_service.MAX_PAGE_TEXT_CHARS)
        self.assertIsNone(og_image)
        # Remaining chunks were never pulled
        self.assertEqual(len(list(chunks)), 8)

    def test_decode_image_rejects_non_images(self):
        with self.assertRaises(gemini_service.InvalidImageError):
            gemini_service.decode_image(base64.b64encode(b'plain text').decode())
        with self.assertRaises(gemini_service.InvalidImageError):
            gemini_service.decode_image('***')

    @override_settings(GEMINI_API_KEY='')
    def test_generate_content_requires_key(self):
        with self.assertRaises(gemini_service.GeminiNotConfigured):
            gemini_service.generate_content([{'parts': [{'text': 'hi'}]}])


class WardrobeItemViewTests(APITestCase):
    """Test wardrobe item endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/wardrobe/items/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_item(self):
        response = self.client.post('/api/v1/wardrobe/items/', {
            'name': 'Penny Loafer',
            'brand': 'Alden',
            'category': 'シューズ',
            'purchase_price': 98000,
            'purchase_date': '2023-10-01',
            'is_sold': True,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item = WardrobeItem.objects.get(pk=response.data['id'])
        self.assertEqual(item.owner, self.user)
        self.assertFalse(item.is_sold)
        self.assertTrue(response.data['is_active'])

    def test_create_item_validation(self):
        response = self.client.post('/api/v1/wardrobe/items/', {
            'name': 'Hat', 'category': 'Hats', 'purchase_price': -1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category', response.data)
        self.assertIn('purchase_price', response.data)

    def test_list_filters(self):
        TestDataFactory.create_wardrobe_item(self.user, name='Active shoe')
        TestDataFactory.create_wardrobe_item(self.user, name='Sold shirt', category='トップス', is_sold=True)
        TestDataFactory.create_wardrobe_item(self.user, name='Gone', is_discarded=True)
        TestDataFactory.create_wardrobe_item(TestDataFactory.create_user(), name='Not mine')

        response = self.client.get('/api/v1/wardrobe/items/')
        self.assertEqual(len(response.data), 3)

        response = self.client.get('/api/v1/wardrobe/items/?status=active')
        self.assertEqual([row['name'] for row in response.data], ['Active shoe'])

        response = self.client.get('/api/v1/wardrobe/items/?status=sold')
        self.assertEqual([row['name'] for row in response.data], ['Sold shirt'])

        response = self.client.get('/api/v1/wardrobe/items/', {'category': 'トップス'})
        self.assertEqual([row['name'] for row in response.data], ['Sold shirt'])

        response = self.client.get('/api/v1/wardrobe/items/?status=lost')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_users_item_is_not_found(self):
        item = TestDataFactory.create_wardrobe_item(TestDataFactory.create_user())
        for method in ('get', 'patch', 'delete'):
            response = getattr(self.client, method)(f'/api/v1/wardrobe/items/{item.id}/')
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, method)
        response = self.client.post(f'/api/v1/wardrobe/items/{item.id}/discard/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(WardrobeItem.objects.filter(pk=item.pk).exists())

    def test_update_and_delete(self):
        item = TestDataFactory.create_wardrobe_item(self.user, color='Brown')
        response = self.client.patch(f'/api/v1/wardrobe/items/{item.id}/', {'color': 'Black'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['color'], 'Black')

        response = self.client.delete(f'/api/v1/wardrobe/items/{item.id}/')
        self.assertEqual(response.data, {'success': True})
        self.assertFalse(WardrobeItem.objects.filter(pk=item.pk).exists())

    def test_sell_discard_restore(self):
        item = TestDataFactory.create_wardrobe_item(self.user)

        response = self.client.post(f'/api/v1/wardrobe/items/{item.id}/sell/', {
            'sold_date': '2024-02-01', 'sold_price': 30000, 'sold_location': 'メルカリ',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_sold'])
        self.assertEqual(response.data['sold_currency'], 'JPY')

        response = self.client.post(f'/api/v1/wardrobe/items/{item.id}/restore/')
        self.assertTrue(response.data['is_active'])
        self.assertIsNone(response.data['sold_price'])

        response = self.client.post(f'/api/v1/wardrobe/items/{item.id}/discard/')
        self.assertTrue(response.data['is_discarded'])
        self.assertIsNotNone(response.data['discarded_at'])

    def test_sell_requires_date_and_price(self):
        item = TestDataFactory.create_wardrobe_item(self.user)
        response = self.client.post(f'/api/v1/wardrobe/items/{item.id}/sell/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sold_date', response.data)
        self.assertIn('sold_price', response.data)


class StylingPhotoViewTests(APITestCase):
    """Test outfit photo endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.item = TestDataFactory.create_wardrobe_item(self.user, name='Loafer')

    def test_create_with_worn_items(self):
        response = self.client.post('/api/v1/wardrobe/styling-photos/', {
            'image_url': 'https://example.com/outfit.jpg',
            'title': 'Friday',
            'worn_item_ids': [self.item.id, self.item.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([row['name'] for row in response.data['worn_items']], ['Loafer'])

        response = self.client.get('/api/v1/wardrobe/styling-photos/')
        self.assertEqual(len(response.data), 1)

    def test_worn_items_must_belong_to_caller(self):
        foreign = TestDataFactory.create_wardrobe_item(TestDataFactory.create_user())
        response = self.client.post('/api/v1/wardrobe/styling-photos/', {
            'image_url': 'https://example.com/outfit.jpg',
            'worn_item_ids': [self.item.id, foreign.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('worn_item_ids', response.data)
        self.assertFalse(StylingPhoto.objects.exists())

    def test_delete(self):
        photo = StylingPhoto.objects.create(owner=self.user, image_url='https://example.com/a.jpg')
        response = self.client.delete(f'/api/v1/wardrobe/styling-photos/{photo.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(StylingPhoto.objects.exists())

    def test_delete_other_users_photo(self):
        photo = StylingPhoto.objects.create(owner=TestDataFactory.create_user(), image_url='https://example.com/a.jpg')
        response = self.client.delete(f'/api/v1/wardrobe/styling-photos/{photo.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class SizingViewTests(APITestCase):
    """Test foot measurements, brand mappings and size recommendation endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)

    def test_foot_measurement_crud(self):
        response = self.client.post('/api/v1/wardrobe/foot-measurements/', {
            'foot_type': 'left', 'length_mm': '262.5', 'width_mm': '101.0',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        measurement_id = response.data['id']

        response = self.client.put(f'/api/v1/wardrobe/foot-measurements/{measurement_id}/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

        response = self.client.delete(f'/api/v1/wardrobe/foot-measurements/{measurement_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(FootMeasurement.objects.exists())

    def test_foot_measurement_rejects_non_positive_length(self):
        response = self.client.post('/api/v1/wardrobe/foot-measurements/', {
            'foot_type': 'left', 'length_mm': '0', 'width_mm': '100',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_brand_size_mapping_crud(self):
        response = self.client.post('/api/v1/wardrobe/brand-size-mappings/', {
            'brand_name': 'Alden', 'size': '8', 'size_system': 'US', 'fit_rating': 4,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        mapping_id = response.data['id']

        response = self.client.patch(f'/api/v1/wardrobe/brand-size-mappings/{mapping_id}/', {'comfort_rating': 5}, format='json')
        self.assertEqual(response.data['comfort_rating'], 5)

        response = self.client.patch(f'/api/v1/wardrobe/brand-size-mappings/{mapping_id}/', {'owner': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/wardrobe/brand-size-mappings/{mapping_id}/', {'fit_rating': 9}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/wardrobe/brand-size-mappings/{mapping_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_size_recommendation(self):
        TestDataFactory.create_foot_measurement(self.user, length_mm=Decimal('248.0'))
        TestDataFactory.create_brand_size_mapping(self.user)
        response = self.client.post('/api/v1/wardrobe/size-recommendation/', {
            'product_name': 'Crockett Harvard',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['recommended_size'], '26cm')
        self.assertEqual(response.data['confidence_score'], 85)
        self.assertEqual(response.data['brand_name'], 'Crockett')

    def test_size_recommendation_requires_product_name(self):
        response = self.client.post('/api/v1/wardrobe/size-recommendation/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AnalysisViewTests(APITestCase):
    """Test analysis and export endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_wardrobe_item(self.user, name='Loafer', brand='Alden', purchase_price=98000)
        TestDataFactory.create_wardrobe_item(TestDataFactory.create_user(), name='Not mine', purchase_price=1)

    def test_portfolio(self):
        response = self.client.get('/api/v1/wardrobe/analysis/portfolio/?range=3Y')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['range'], '3Y')
        self.assertEqual(response.data['total_items'], 1)
        self.assertEqual(response.data['total_value'], 98000)

    def test_portfolio_invalid_range(self):
        response = self.client.get('/api/v1/wardrobe/analysis/portfolio/?range=2W')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sales(self):
        response = self.client.get('/api/v1/wardrobe/analysis/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_sold_count'], 0)
        self.assertEqual(len(response.data['monthly_sales']), 12)

    def test_export(self):
        response = self.client.get('/api/v1/wardrobe/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['name'] for row in response.data], ['Loafer'])
        self.assertEqual(response.data[0]['status'], 'active')


@override_settings(GEMINI_API_KEY='test-key', GEMINI_MODEL='gemini-test', GEMINI_API_BASE='https://gemini.test/v1beta')
class RecognitionViewTests(APITestCase):
    """Test the Gemini-backed endpoints with the HTTP layer mocked"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user(height_cm=175, body_type='straight')
        self.client.authenticate_user(self.user)

    @mock.patch('storefront.wardrobe.gemini_service.requests.post')
    def test_extract_tag(self, post):
        post.return_value = gemini_reply('```json\n{"brand": "Alden", "size": "8D"}\n```')
        response = self.client.post('/api/v1/wardrobe/extract-tag/', {'imageBase64': png_base64()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'brand': 'Alden', 'size': '8D'})

        self.assertEqual(post.call_args.args[0], 'https://gemini.test/v1beta/models/gemini-test:generateContent')
        self.assertEqual(post.call_args.kwargs['params'], {'key': 'test-key'})
        parts = post.call_args.kwargs['json']['contents'][0]['parts']
        self.assertEqual(parts[1]['inline_data']['mime_type'], 'image/png')

    @mock.patch('storefront.wardrobe.gemini_service.requests.post')
    def test_analyze_image_rejects_non_image(self, post):
        response = self.client.post('/api/v1/wardrobe/analyze-image/', {
            'imageBase64': base64.b64encode(b'not an image').decode(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        post.assert_not_called()

    @mock.patch('storefront.wardrobe.gemini_service.requests.post')
    def test_analyze_image(self, post):
        post.return_value = gemini_reply('{"name": "Navy blazer", "category": "アウター／ジャケット"}')
        response = self.client.post('/api/v1/wardrobe/analyze-image/', {'imageBase64': png_base64()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Navy blazer')

    @mock.patch('storefront.wardrobe.gemini_service.requests.post')
    def test_upstream_failure_is_bad_gateway(self, post):
        post.side_effect = requests.exceptions.ConnectionError('boom')
        response = self.client.post('/api/v1/wardrobe/extract-tag/', {'imageBase64': png_base64()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    @mock.patch('storefront.wardrobe.gemini_service.requests.post')
    def test_reply_without_json_is_bad_gateway(self, post):
        post.return_value = gemini_reply('I cannot read this tag.')
        response = self.client.post('/api/v1/wardrobe/extract-tag/', {'imageBase64': png_base64()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    @override_settings(GEMINI_API_KEY='')
    def test_not_configured(self):
        response = self.client.post('/api/v1/wardrobe/extract-tag/', {'imageBase64': png_base64()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    @mock.patch('storefront.wardrobe.gemini_service.socket.getaddrinfo', return_value=PUBLIC_ADDRESS)
    @mock.patch('storefront.wardrobe.gemini_service.requests.post')
    @mock.patch('storefront.wardrobe.gemini_service.requests.get')
    def test_scrape_url(self, get, post, getaddrinfo):
        get.return_value = page_response((
            '<html><head><meta property="og:image" content="https://shop.example.com/loafer.jpg">'
            '<script>var x = 1;</script></head><body><h1>Penny Loafer</h1><p>¥38,500</p></body></html>'
        ).encode())
        post.return_value = gemini_reply('{"name": "Penny Loafer", "price": "38500", "image_url": ""}')

        response = self.client.post('/api/v1/wardrobe/scrape-url/', {'url': 'https://shop.example.com/loafer'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Penny Loafer')
        self.assertEqual(response.data['image_url'], 'https://shop.example.com/loafer.jpg')

        prompt = post.call_args.kwargs['json']['contents'][0]['parts'][0]['text']
        self.assertIn('Penny Loafer', prompt)
        self.assertNotIn('var x', prompt)

    @mock.patch('storefront.wardrobe.gemini_service.socket.getaddrinfo', return_value=PUBLIC_ADDRESS)
    @mock.patch('storefront.wardrobe.gemini_service.requests.get')
    def test_scrape_url_fetch_failure(self, get, getaddrinfo):
        get.side_effect = requests.exceptions.Timeout('slow')
        response = self.client.post('/api/v1/wardrobe/scrape-url/', {'url': 'https://shop.example.com/x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    @mock.patch('storefront.wardrobe.gemini_service.requests.get')
    def test_scrape_url_refuses_internal_hosts(self, get):
        for url in (
            'http://169.254.169.254/latest/meta-data/',
            'http://127.0.0.1:8000/admin/',
            'http://10.0.0.5/',
            'http://[::1]/',
        ):
            response = self.client.post('/api/v1/wardrobe/scrape-url/', {'url': url}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, url)
        get.assert_not_called()

    @mock.patch('storefront.wardrobe.gemini_service.socket.getaddrinfo')
    @mock.patch('storefront.wardrobe.gemini_service.requests.get')
    def test_scrape_url_refuses_names_resolving_to_private_addresses(self, get, getaddrinfo):
        getaddrinfo.return_value = [(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, '', ('192.168.1.10', 80))]
        response = self.client.post('/api/v1/wardrobe/scrape-url/', {'url': 'http://intranet.example.com/'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        get.assert_not_called()

    @mock.patch('storefront.wardrobe.gemini_service.socket.getaddrinfo', return_value=PUBLIC_ADDRESS)
    @mock.patch('storefront.wardrobe.gemini_service.requests.get')
    def test_scrape_url_checks_every_redirect(self, get, getaddrinfo):
        get.return_value = page_response(location='http://169.254.169.254/latest/meta-data/')

        def resolve(host, *args, **kwargs):
            if host == '169.254.169.254':
                return [(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, '', ('169.254.169.254', 80))]
            return PUBLIC_ADDRESS
        getaddrinfo.side_effect = resolve

        response = self.client.post('/api/v1/wardrobe/scrape-url/', {'url': 'https://shop.example.com/go'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(get.call_count, 1)
        self.assertFalse(get.call_args.kwargs['allow_redirects'])
        self.assertTrue(get.call_args.kwargs['stream'])

    @mock.patch('storefront.wardrobe.gemini_service.socket.getaddrinfo', return_value=PUBLIC_ADDRESS)
    @mock.patch('storefront.wardrobe.gemini_service.requests.post')
    @mock.patch('storefront.wardrobe.gemini_service.requests.get')
    def test_scrape_url_follows_public_redirect(self, get, post, getaddrinfo):
        get.side_effect = [
            page_response(location='/products/loafer'),
            page_response(b'<html><body><h1>Penny Loafer</h1></body></html>'),
        ]
        post.return_value = gemini_reply('{"name": "Penny Loafer"}')

        response = self.client.post('/api/v1/wardrobe/scrape-url/', {'url': 'https://shop.example.com/go'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(get.call_args_list[1].args[0], 'https://shop.example.com/products/loafer')

    @mock.patch('storefront.wardrobe.gemini_service.socket.getaddrinfo', return_value=PUBLIC_ADDRESS)
    @mock.patch('storefront.wardrobe.gemini_service.requests.get')
    def test_scrape_url_gives_up_after_redirect_loop(self, get, getaddrinfo):
        get.return_value = page_response(location='https://shop.example.com/loop')
        response = self.client.post('/api/v1/wardrobe/scrape-url/', {'url': 'https://shop.example.com/loop'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(get.call_count, gemini_service.MAX_REDIRECTS + 1)

    def test_scrape_url_requires_valid_url(self):
        response = self.client.post('/api/v1/wardrobe/scrape-url/', {'url': 'not a url'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('storefront.wardrobe.gemini_service.requests.post')
    def test_ai_chat(self, post):
        TestDataFactory.create_wardrobe_item(self.user, name='Navy blazer', brand='Beams')
        TestDataFactory.create_wardrobe_item(self.user, name='Sold coat', is_sold=True)
        post.return_value = gemini_reply('  ネイビーのブレザーにローファーを合わせましょう。 ')

        response = self.client.post('/api/v1/wardrobe/ai-chat/', {
            'message': '週末のコーデは？',
            'history': [
                {'role': 'user', 'content': 'こんにちは'},
                {'role': 'assistant', 'content': 'こんにちは！'},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'reply': 'ネイビーのブレザーにローファーを合わせましょう。'})

        payload = post.call_args.kwargs['json']
        self.assertEqual([turn['role'] for turn in payload['contents']], ['user', 'model', 'user'])
        system_text = payload['systemInstruction']['parts'][0]['text']
        self.assertIn('Navy blazer', system_text)
        self.assertNotIn('Sold coat', system_text)
        self.assertIn('175cm', system_text)

    def test_ai_chat_requires_message(self):
        response = self.client.post('/api/v1/wardrobe/ai-chat/', {'history': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


@override_settings(S3_BUCKET='test-bucket')
class WardrobeUploadUrlTests(APITestCase):
    """Test the per-user upload URL endpoint"""

    @mock.patch('storefront.core.storage.get_s3_client')
    def test_upload_url_uses_user_folder(self, get_client):
        get_client.return_value.generate_presigned_url.return_value = 'https://signed.example.com/put'
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/wardrobe/upload-url/', {
            'filename': 'look.webp', 'contentType': 'image/webp',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['key'].startswith(f'wardrobe/{user.id}/'))
