"""
Test suite for the catalog module
Tests: public listing and filters, listing cache, admin product CRUD, variants, images, ordering
"""
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework import status

from storefront.catalog.models import Category, Product, ProductImage, ProductVariant
from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory


class PublicCatalogTests(APITestCase):
    """Test the anonymous storefront endpoints"""

    def setUp(self):
        super().setUp()
        self.category = TestDataFactory.create_category(name='Loafers', slug='loafers')
        self.shoe = TestDataFactory.create_product(
            name='Penny Loafer', slug='penny-loafer', kind='shoes', featured=True,
            display_order=2, category=self.category,
        )
        self.belt = TestDataFactory.create_product(name='Leather Belt', slug='leather-belt', kind='accessory', display_order=1)

    def test_category_list(self):
        TestDataFactory.create_category(name='Accessories', slug='accessories')
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['slug'] for row in response.data], ['accessories', 'loafers'])

    def test_category_detail(self):
        response = self.client.get('/api/v1/categories/loafers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Loafers')

    def test_category_detail_not_found(self):
        response = self.client.get('/api/v1/categories/missing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Category not found')

    def test_product_list_in_display_order(self):
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['slug'] for row in response.data], ['leather-belt', 'penny-loafer'])

    def test_product_list_filters(self):
        response = self.client.get('/api/v1/products/?category=shoes')
        self.assertEqual([row['slug'] for row in response.data], ['penny-loafer'])

        response = self.client.get('/api/v1/products/?featured=true')
        self.assertEqual([row['slug'] for row in response.data], ['penny-loafer'])

        response = self.client.get(f'/api/v1/products/?category_id={self.category.id}')
        self.assertEqual([row['slug'] for row in response.data], ['penny-loafer'])

    def test_product_list_rejects_bad_category_id(self):
        response = self.client.get('/api/v1/products/?category_id=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category_id', response.data)

    def test_product_list_includes_images_and_variants(self):
        TestDataFactory.create_product_image(self.shoe, display_order=2, url='https://example.com/2.jpg')
        TestDataFactory.create_product_image(self.shoe, display_order=1, url='https://example.com/1.jpg')
        TestDataFactory.create_variant(self.shoe, size='26.5')
        TestDataFactory.create_variant(self.shoe, size='25.5')

        response = self.client.get('/api/v1/products/penny-loafer/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [image['url'] for image in response.data['product_images']],
            ['https://example.com/1.jpg', 'https://example.com/2.jpg'],
        )
        self.assertEqual([variant['size'] for variant in response.data['product_variants']], ['25.5', '26.5'])
        self.assertEqual(response.data['category_id'], self.category.id)

    def test_product_detail_not_found(self):
        response = self.client.get('/api/v1/products/unknown/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Product not found')

    def test_listing_cache_is_invalidated_on_change(self):
        first = self.client.get('/api/v1/products/')
        self.assertEqual(len(first.data), 2)

        # Cached payload survives a direct queryset update, which sends no signal
        Product.objects.filter(pk=self.belt.pk).update(name='Renamed')
        cached = self.client.get('/api/v1/products/')
        self.assertEqual(cached.data[0]['name'], 'Leather Belt')

        TestDataFactory.create_product(name='Tassel Loafer', display_order=3)
        fresh = self.client.get('/api/v1/products/')
        self.assertEqual(len(fresh.data), 3)
        self.assertEqual(fresh.data[0]['name'], 'Renamed')


class AdminProductTests(APITestCase):
    """Test admin product management"""

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)

    def test_create_product(self):
        category = TestDataFactory.create_category()
        response = self.client.post('/api/v1/admin/products/', {
            'name': 'Tassel Loafer',
            'slug': 'tassel-loafer',
            'price': '38000',
            'kind': 'shoes',
            'category_id': category.id,
            'stock': 4,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = Product.objects.get(slug='tassel-loafer')
        self.assertEqual(product.price, Decimal('38000'))
        self.assertEqual(product.category, category)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Product', object_id=str(product.id)).exists())

    def test_create_product_validation(self):
        response = self.client.post('/api/v1/admin/products/', {'slug': 'no-name'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_create_product_rejects_fractional_price(self):
        response = self.client.post('/api/v1/admin/products/', {
            'name': 'Tassel Loafer',
            'slug': 'tassel-loafer',
            'price': '1999.99',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data)
        self.assertFalse(Product.objects.filter(slug='tassel-loafer').exists())

    def test_create_product_duplicate_slug(self):
        TestDataFactory.create_product(slug='taken')
        response = self.client.post('/api/v1/admin/products/', {
            'name': 'Other', 'slug': 'taken', 'price': '1000',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_cannot_create_product(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/admin/products/', {'name': 'X', 'slug': 'x', 'price': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_only_sent_fields(self):
        product = TestDataFactory.create_product(name='Original', price=Decimal('10000'))
        response = self.client.patch(f'/api/v1/admin/products/{product.id}/', {
            'price': '12500',
            'created_at': '2000-01-01T00:00:00Z',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.price, Decimal('12500'))
        self.assertEqual(product.name, 'Original')

    def test_update_with_nothing_to_change(self):
        product = TestDataFactory.create_product()
        response = self.client.put(f'/api/v1/admin/products/{product.id}/', {'unknown': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No fields to update')

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        TestDataFactory.create_variant(product)
        response = self.client.delete(f'/api/v1/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())
        self.assertFalse(ProductVariant.objects.filter(product_id=product.pk).exists())

    def test_delete_unknown_product(self):
        response = self.client.delete('/api/v1/admin/products/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_move_product(self):
        first = TestDataFactory.create_product(display_order=1)
        second = TestDataFactory.create_product(display_order=2)
        response = self.client.post(f'/api/v1/admin/products/{second.id}/move/', {'direction': 'up'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [second.id, first.id])
        self.assertTrue(AuditLog.objects.filter(action='reorder', object_id=str(second.id)).exists())

    def test_move_past_the_end_is_a_no_op(self):
        first = TestDataFactory.create_product(display_order=1)
        TestDataFactory.create_product(display_order=2)
        response = self.client.post(f'/api/v1/admin/products/{first.id}/move/', {'direction': 'up'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        first.refresh_from_db()
        self.assertEqual(first.display_order, 1)
        self.assertFalse(AuditLog.objects.filter(action='reorder').exists())

    def test_move_bad_direction(self):
        product = TestDataFactory.create_product()
        response = self.client.post(f'/api/v1/admin/products/{product.id}/move/', {'direction': 'left'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AdminVariantTests(APITestCase):
    """Test size variant management"""

    def setUp(self):
        super().setUp()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.product = TestDataFactory.create_product()

    def test_add_variant(self):
        response = self.client.post(f'/api/v1/admin/products/{self.product.id}/variants/', {
            'size': '27.0', 'stock': 3, 'sku': 'PL-270',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_id'], self.product.id)

    def test_replace_variants_skips_blank_sizes(self):
        TestDataFactory.create_variant(self.product, size='24.0')
        response = self.client.put(f'/api/v1/admin/products/{self.product.id}/variants/', {
            'variants': [
                {'size': '25.0', 'stock': 2},
                {'size': '  ', 'stock': 9},
                {'size': '26.0', 'stock': 1, 'sku': ''},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        sizes = list(self.product.product_variants.values_list('size', flat=True))
        self.assertEqual(sizes, ['25.0', '26.0'])
        self.assertIsNone(self.product.product_variants.get(size='26.0').sku)
        self.assertTrue(AuditLog.objects.filter(action='variants_replace').exists())

    def test_update_variant_keeps_missing_fields(self):
        variant = TestDataFactory.create_variant(self.product, size='26.0', stock=5, sku='SKU-1')
        response = self.client.put(f'/api/v1/admin/variants/{variant.id}/', {'stock': 8, 'sku': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        variant.refresh_from_db()
        self.assertEqual(variant.stock, 8)
        self.assertEqual(variant.sku, 'SKU-1')

    def test_update_unknown_variant(self):
        response = self.client.put('/api/v1/admin/variants/999999/', {'stock': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Variant not found')

    def test_delete_variant(self):
        variant = TestDataFactory.create_variant(self.product)
        response = self.client.delete(f'/api/v1/admin/variants/{variant.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ProductVariant.objects.filter(pk=variant.pk).exists())


class AdminImageTests(APITestCase):
    """Test product gallery management"""

    def setUp(self):
        super().setUp()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.product = TestDataFactory.create_product()

    def test_add_image(self):
        response = self.client.post(f'/api/v1/admin/products/{self.product.id}/images/', {
            'url': 'https://example.com/a.jpg', 'display_order': 2,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['display_order'], 2)

    def test_add_image_to_occupied_position(self):
        TestDataFactory.create_product_image(self.product, display_order=1)
        response = self.client.post(f'/api/v1/admin/products/{self.product.id}/images/', {
            'url': 'https://example.com/b.jpg', 'display_order': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_replace_images_keeps_positions(self):
        TestDataFactory.create_product_image(self.product, display_order=1)
        response = self.client.put(f'/api/v1/admin/products/{self.product.id}/images/', {
            'urls': ['https://example.com/1.jpg', '', 'https://example.com/3.jpg'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        images = list(ProductImage.objects.filter(product=self.product).values_list('display_order', 'url'))
        self.assertEqual(images, [(1, 'https://example.com/1.jpg'), (3, 'https://example.com/3.jpg')])

    def test_replace_images_limit(self):
        urls = [f'https://example.com/{i}.jpg' for i in range(7)]
        response = self.client.put(f'/api/v1/admin/products/{self.product.id}/images/', {'urls': urls}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_replace_images_refreshes_listing_cache(self):
        self.client.get('/api/v1/products/')
        self.client.put(f'/api/v1/admin/products/{self.product.id}/images/', {
            'urls': ['https://example.com/new.jpg'],
        }, format='json')
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data[0]['product_images'][0]['url'], 'https://example.com/new.jpg')

    def test_delete_image(self):
        image = TestDataFactory.create_product_image(self.product)
        response = self.client.delete(f'/api/v1/admin/images/{image.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ProductImage.objects.filter(pk=image.pk).exists())


class SeedStoreCommandTests(TestCase):
    """Test the seed_store management command"""

    def test_seed_is_idempotent(self):
        call_command('seed_store', stdout=StringIO())
        counts = (Category.objects.count(), Product.objects.count())
        call_command('seed_store', stdout=StringIO())
        self.assertEqual((Category.objects.count(), Product.objects.count()), counts)
        self.assertGreater(counts[1], 0)
