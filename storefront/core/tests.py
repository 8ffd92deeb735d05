"""
Test suite for accounts, admin account management, uploads and audit logs
"""
from io import StringIO
from unittest import mock

from botocore.exceptions import ClientError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from rest_framework import status

from storefront.core.models import AuditLog, User
from storefront.core.storage import build_object_key, public_url_for
from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.core.utils import move_in_order, pick_allowed_fields
from storefront.catalog.models import Product


class AuthTests(APITestCase):
    """Test registration, login and token refresh"""

    def test_register_creates_user_and_returns_tokens(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'New.Customer@Example.com',
            'password': 'Loafer-Walk-2024',
            'password_confirm': 'Loafer-Walk-2024',
            'full_name': '山田 太郎',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'new.customer@example.com')
        self.assertFalse(response.data['user']['is_admin'])
        self.assertTrue(User.objects.filter(username='new.customer@example.com').exists())

    def test_register_rejects_mismatched_passwords(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'mismatch@example.com',
            'password': 'Loafer-Walk-2024',
            'password_confirm': 'Different-2024',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_register_rejects_duplicate_email(self):
        TestDataFactory.create_user(email='taken@example.com')
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'TAKEN@example.com',
            'password': 'Loafer-Walk-2024',
            'password_confirm': 'Loafer-Walk-2024',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_login_with_email_is_case_insensitive(self):
        TestDataFactory.create_user(email='shopper@example.com', password='Loafer-Walk-2024')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'Shopper@Example.com',
            'password': 'Loafer-Walk-2024',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['email'], 'shopper@example.com')

    def test_login_with_wrong_password(self):
        TestDataFactory.create_user(email='shopper@example.com', password='Loafer-Walk-2024')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'shopper@example.com',
            'password': 'wrong',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_issues_new_access_token(self):
        TestDataFactory.create_user(email='shopper@example.com', password='Loafer-Walk-2024')
        login = self.client.post('/api/v1/auth/login/', {
            'username': 'shopper@example.com',
            'password': 'Loafer-Walk-2024',
        }, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_with_garbage_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ProfileTests(APITestCase):
    """Test the caller's own profile"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)

    def test_get_profile(self):
        response = self.client.get('/api/v1/profile/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.user.id)
        self.assertEqual(response.data['email'], self.user.email)

    def test_profile_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/profile/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_profile_ignores_unknown_fields(self):
        response = self.client.patch('/api/v1/profile/', {
            'full_name': '佐藤 花子',
            'height_cm': 162,
            'body_features': ['なで肩'],
            'is_staff': True,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.full_name, '佐藤 花子')
        self.assertEqual(self.user.height_cm, 162)
        self.assertEqual(self.user.body_features, ['なで肩'])
        self.assertFalse(self.user.is_staff)

    def test_update_profile_with_no_allowed_fields(self):
        response = self.client.put('/api/v1/profile/', {'is_staff': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No fields to update')

    def test_update_profile_validates_values(self):
        response = self.client.patch('/api/v1/profile/', {'body_type': 'round'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AdminAccountTests(APITestCase):
    """Test admin account management endpoints"""

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)

    def test_non_admin_is_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/profiles/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_profiles(self):
        TestDataFactory.create_user()
        response = self.client.get('/api/v1/admin/profiles/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_create_user_without_password(self):
        response = self.client.post('/api/v1/admin/users/', {
            'email': 'Staff@Example.com',
            'is_admin': True,
            'full_name': 'Staff Member',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        user = User.objects.get(username='staff@example.com')
        self.assertTrue(user.is_staff)
        self.assertFalse(user.has_usable_password())
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='User', object_id=str(user.id)).exists())

    def test_set_admin_flag(self):
        user = TestDataFactory.create_user()
        response = self.client.put(f'/api/v1/admin/profiles/{user.id}/admin/', {'is_admin': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_admin'])
        self.assertTrue(AuditLog.objects.filter(action='admin_grant', object_id=str(user.id)).exists())

        response = self.client.put(f'/api/v1/admin/profiles/{user.id}/admin/', {'is_admin': False}, format='json')
        self.assertFalse(response.data['is_admin'])
        self.assertTrue(AuditLog.objects.filter(action='admin_revoke', object_id=str(user.id)).exists())

    def test_set_admin_flag_requires_boolean(self):
        user = TestDataFactory.create_user()
        response = self.client.put(f'/api/v1/admin/profiles/{user.id}/admin/', {'is_admin': 'yes'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_set_admin_flag_unknown_user(self):
        response = self.client.put('/api/v1/admin/profiles/999999/admin/', {'is_admin': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_user(self):
        user = TestDataFactory.create_user()
        response = self.client.delete(f'/api/v1/admin/profiles/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True})
        self.assertFalse(User.objects.filter(pk=user.pk).exists())

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/admin/profiles/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_audit_log_filters(self):
        AuditLog.objects.create(user=self.admin, action='create', model_name='Product', object_id='1')
        AuditLog.objects.create(user=self.admin, action='delete', model_name='Styling', object_id='2')

        response = self.client.get('/api/v1/admin/audit-logs/?action=delete')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['model_name'], 'Styling')
        self.assertEqual(response.data[0]['user']['email'], self.admin.email)

        response = self.client.get('/api/v1/admin/audit-logs/?model=Product')
        self.assertEqual(len(response.data), 1)


@override_settings(S3_BUCKET='test-bucket', AWS_REGION='ap-northeast-1', S3_PUBLIC_BASE_URL='')
class UploadUrlTests(APITestCase):
    """Test pre-signed upload URL issuing"""

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)

    @mock.patch('storefront.core.storage.get_s3_client')
    def test_admin_upload_url(self, get_client):
        get_client.return_value.generate_presigned_url.return_value = 'https://signed.example.com/put'
        response = self.client.post('/api/v1/admin/upload-url/', {
            'filename': 'Photo.JPG',
            'contentType': 'image/jpeg',
            'folder': 'products',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['uploadUrl'], 'https://signed.example.com/put')
        self.assertTrue(response.data['key'].startswith('products/'))
        self.assertTrue(response.data['key'].endswith('.jpg'))
        self.assertEqual(
            response.data['publicUrl'],
            f"https://test-bucket.s3.ap-northeast-1.amazonaws.com/{response.data['key']}",
        )
        params = get_client.return_value.generate_presigned_url.call_args.kwargs['Params']
        self.assertEqual(params['ContentType'], 'image/jpeg')
        self.assertTrue(AuditLog.objects.filter(action='upload_url', object_id=response.data['key']).exists())

    def test_upload_url_requires_filename_and_content_type(self):
        response = self.client.post('/api/v1/admin/upload-url/', {'filename': 'a.png'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('storefront.core.storage.get_s3_client')
    def test_upload_url_signing_failure(self, get_client):
        get_client.return_value.generate_presigned_url.side_effect = ClientError(
            {'Error': {'Code': 'AccessDenied', 'Message': 'denied'}}, 'PutObject'
        )
        response = self.client.post('/api/v1/admin/upload-url/', {
            'filename': 'a.png',
            'contentType': 'image/png',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(AuditLog.objects.filter(action='upload_url').exists())

    @override_settings(S3_BUCKET='')
    def test_upload_url_without_bucket(self):
        response = self.client.post('/api/v1/admin/upload-url/', {
            'filename': 'a.png',
            'contentType': 'image/png',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    def test_upload_url_forbidden_for_customers(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/admin/upload-url/', {
            'filename': 'a.png',
            'contentType': 'image/png',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class StorageHelperTests(TestCase):
    """Test object key and public URL building"""

    def test_build_object_key(self):
        key = build_object_key('shoe.PNG', 'styling', now_ms=1700000000000)
        folder, name = key.split('/')
        self.assertEqual(folder, 'styling')
        self.assertTrue(name.startswith('1700000000000-'))
        self.assertTrue(name.endswith('.png'))
        self.assertEqual(len(name.split('-', 1)[1].split('.')[0]), 11)

    def test_build_object_key_defaults(self):
        key = build_object_key('noextension')
        self.assertTrue(key.startswith('uploads/'))
        self.assertTrue(key.endswith('.bin'))

    @override_settings(S3_PUBLIC_BASE_URL='https://cdn.example.com/')
    def test_public_url_uses_base_url(self):
        self.assertEqual(public_url_for('uploads/a.png'), 'https://cdn.example.com/uploads/a.png')


class UtilsTests(TestCase):
    """Test shared helpers"""

    def test_pick_allowed_fields(self):
        data = {'name': 'A', 'price': 10, 'secret': True}
        self.assertEqual(pick_allowed_fields(data, ['name', 'price', 'stock']), {'name': 'A', 'price': 10})

    def test_move_in_order_swaps_neighbours(self):
        first = TestDataFactory.create_product(display_order=1)
        second = TestDataFactory.create_product(display_order=2)
        self.assertTrue(move_in_order(Product.objects.all(), second, 'up'))
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual((first.display_order, second.display_order), (2, 1))

    def test_move_in_order_at_edge(self):
        first = TestDataFactory.create_product(display_order=1)
        TestDataFactory.create_product(display_order=2)
        self.assertFalse(move_in_order(Product.objects.all(), first, 'up'))

    def test_move_in_order_renumbers_ties(self):
        for _ in range(3):
            TestDataFactory.create_product(display_order=0)
        ordered = list(Product.objects.all())
        self.assertTrue(move_in_order(Product.objects.all(), ordered[2], 'up'))
        orders = sorted(Product.objects.values_list('display_order', flat=True))
        self.assertEqual(orders, [1, 2, 3])
        ordered[2].refresh_from_db()
        self.assertEqual(ordered[2].display_order, 2)

    def test_move_in_order_rejects_unknown_direction(self):
        product = TestDataFactory.create_product()
        with self.assertRaises(ValueError):
            move_in_order(Product.objects.all(), product, 'sideways')


class GrantAdminCommandTests(TestCase):
    """Test the grant_admin management command"""

    def test_grant_and_revoke(self):
        user = TestDataFactory.create_user(email='owner@example.com')
        out = StringIO()
        call_command('grant_admin', 'Owner@Example.com', stdout=out)
        user.refresh_from_db()
        self.assertTrue(user.is_staff)
        self.assertIn('Granted admin to owner@example.com', out.getvalue())

        call_command('grant_admin', 'owner@example.com', '--revoke', stdout=StringIO())
        user.refresh_from_db()
        self.assertFalse(user.is_staff)

    def test_unknown_account(self):
        with self.assertRaises(CommandError):
            call_command('grant_admin', 'nobody@example.com', stdout=StringIO())
