"""
Test suite for the styling lookbook
"""
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.styling.models import Styling, StylingImage


class PublicStylingTests(APITestCase):
    """Test the public lookbook endpoints"""

    def test_list_in_display_order(self):
        TestDataFactory.create_styling(slug='second', display_order=2)
        TestDataFactory.create_styling(slug='first', display_order=1)
        response = self.client.get('/api/v1/styling/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['slug'] for row in response.data], ['first', 'second'])

    def test_detail_includes_images(self):
        styling = TestDataFactory.create_styling(slug='casual-style')
        StylingImage.objects.create(styling=styling, url='https://example.com/look.jpg', display_order=1)
        response = self.client.get('/api/v1/styling/casual-style/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['styling_images'][0]['url'], 'https://example.com/look.jpg')

    def test_detail_not_found(self):
        response = self.client.get('/api/v1/styling/missing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Styling not found')

    def test_list_cache_invalidated_on_save(self):
        styling = TestDataFactory.create_styling(title='Before')
        self.client.get('/api/v1/styling/')
        styling.title = 'After'
        styling.save()
        response = self.client.get('/api/v1/styling/')
        self.assertEqual(response.data[0]['title'], 'After')


class AdminStylingTests(APITestCase):
    """Test admin lookbook management"""

    def setUp(self):
        super().setUp()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_create_styling(self):
        response = self.client.post('/api/v1/admin/styling/', {
            'title': 'Weekend',
            'slug': 'weekend',
            'image_url': 'https://example.com/weekend.jpg',
            'height': '175cm',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Styling.objects.filter(slug='weekend').exists())
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Styling').exists())

    def test_create_requires_image_and_slug(self):
        response = self.client.post('/api/v1/admin/styling/', {'title': 'Incomplete'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('slug', response.data)
        self.assertIn('image_url', response.data)

    def test_update_and_delete(self):
        styling = TestDataFactory.create_styling()
        response = self.client.patch(f'/api/v1/admin/styling/{styling.id}/', {'color': 'Navy'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['color'], 'Navy')

        response = self.client.patch(f'/api/v1/admin/styling/{styling.id}/', {'id': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/admin/styling/{styling.id}/')
        self.assertEqual(response.data, {'success': True})
        self.assertFalse(Styling.objects.filter(pk=styling.pk).exists())

    def test_move_down(self):
        first = TestDataFactory.create_styling(display_order=1)
        second = TestDataFactory.create_styling(display_order=2)
        response = self.client.post(f'/api/v1/admin/styling/{first.id}/move/', {'direction': 'down'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [second.id, first.id])

    def test_replace_images(self):
        styling = TestDataFactory.create_styling()
        response = self.client.put(f'/api/v1/admin/styling/{styling.id}/images/', {
            'urls': ['', 'https://example.com/2.jpg'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['display_order'], 2)

    def test_add_and_delete_image(self):
        styling = TestDataFactory.create_styling()
        response = self.client.post(f'/api/v1/admin/styling/{styling.id}/images/', {
            'url': 'https://example.com/extra.jpg', 'display_order': 3,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.delete(f"/api/v1/admin/styling-images/{response.data['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(styling.styling_images.exists())

    def test_customer_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/styling/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
