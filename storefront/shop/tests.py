"""
Test suite for the shop module
Tests: cart lines, cart events, checkout snapshots and order status workflow
"""
from decimal import Decimal
from unittest import mock

from django.db import IntegrityError, transaction
from django.db.models.query import QuerySet
from django.test import TestCase
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import APITestCase, TestDataFactory
from storefront.shop.models import CartEvent, CartItem, Order, OrderItem


class OrderModelTests(TestCase):
    """Test the order status workflow"""

    def test_allowed_transitions(self):
        order = Order(total_amount=0, status='pending')
        self.assertTrue(order.can_transition_to('processing'))
        self.assertTrue(order.can_transition_to('shipped'))
        self.assertTrue(order.can_transition_to('cancelled'))
        self.assertFalse(order.can_transition_to('completed'))

    def test_terminal_states(self):
        for terminal in ('completed', 'cancelled'):
            order = Order(total_amount=0, status=terminal)
            for target in ('pending', 'processing', 'shipped', 'completed', 'cancelled'):
                self.assertFalse(order.can_transition_to(target))

    def test_line_totals(self):
        user = TestDataFactory.create_user()
        product = TestDataFactory.create_product(price=Decimal('4500'))
        item = TestDataFactory.create_cart_item(user, product, quantity=3)
        self.assertEqual(item.line_total, 13500)

    def test_one_line_per_product_without_variant(self):
        user = TestDataFactory.create_user()
        product = TestDataFactory.create_product()
        TestDataFactory.create_cart_item(user, product)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                TestDataFactory.create_cart_item(user, product)
        self.assertEqual(CartItem.objects.filter(user=user, product=product).count(), 1)

    def test_lines_with_different_variants_coexist(self):
        user = TestDataFactory.create_user()
        product = TestDataFactory.create_product()
        TestDataFactory.create_cart_item(user, product)
        TestDataFactory.create_cart_item(user, product, variant=TestDataFactory.create_variant(product, size='25.0'))
        self.assertEqual(CartItem.objects.filter(user=user, product=product).count(), 2)


class CartTests(APITestCase):
    """Test the caller's cart"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(price=Decimal('38500'))
        self.variant = TestDataFactory.create_variant(self.product, size='26.0')

    def test_cart_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_add_new_line(self):
        response = self.client.post('/api/v1/cart/', {
            'product_id': self.product.id,
            'variant_id': self.variant.id,
            'quantity': 2,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quantity'], 2)
        self.assertEqual(response.data['products']['id'], self.product.id)
        self.assertEqual(response.data['product_variants']['size'], '26.0')
        self.assertEqual(response.data['line_total'], 77000)
        self.assertEqual(CartEvent.objects.filter(action='add').count(), 1)

    def test_add_same_line_increments(self):
        self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'variant_id': self.variant.id}, format='json')
        response = self.client.post('/api/v1/cart/', {
            'product_id': self.product.id, 'variant_id': self.variant.id, 'quantity': 2,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 3)
        self.assertEqual(CartItem.objects.filter(user=self.user).count(), 1)

    def test_add_without_variant_increments(self):
        self.client.post('/api/v1/cart/', {'product_id': self.product.id}, format='json')
        response = self.client.post('/api/v1/cart/', {'product_id': self.product.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 2)
        self.assertEqual(CartItem.objects.filter(user=self.user, variant__isnull=True).count(), 1)

    def test_add_falls_back_to_increment_when_line_appears_concurrently(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=2)
        # The existence check misses the line, so the insert hits the constraint
        with mock.patch.object(QuerySet, 'exists', return_value=False):
            response = self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 5)
        self.assertEqual(CartItem.objects.filter(user=self.user, product=self.product).count(), 1)
        self.assertEqual(CartEvent.objects.filter(action='add').count(), 1)

    def test_add_rejects_foreign_variant(self):
        other = TestDataFactory.create_product()
        other_variant = TestDataFactory.create_variant(other)
        response = self.client.post('/api/v1/cart/', {
            'product_id': self.product.id, 'variant_id': other_variant.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('variant_id', response.data)

    def test_add_rejects_zero_quantity(self):
        response = self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cart_is_per_user(self):
        TestDataFactory.create_cart_item(TestDataFactory.create_user(), self.product)
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.data, [])

    def test_update_quantity_records_delta(self):
        item = TestDataFactory.create_cart_item(self.user, self.product, quantity=1)
        response = self.client.put(f'/api/v1/cart/{item.id}/', {'quantity': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 4)
        event = CartEvent.objects.get(action='update')
        self.assertEqual(event.quantity, 3)

    def test_remove_line(self):
        item = TestDataFactory.create_cart_item(self.user, self.product, quantity=2)
        response = self.client.delete(f'/api/v1/cart/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(CartItem.objects.filter(pk=item.pk).exists())
        self.assertEqual(CartEvent.objects.get(action='remove').quantity, 2)

    def test_other_users_line_is_not_found(self):
        item = TestDataFactory.create_cart_item(TestDataFactory.create_user(), self.product)
        response = self.client.put(f'/api/v1/cart/{item.id}/', {'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Cart item not found')

    def test_clear_cart(self):
        TestDataFactory.create_cart_item(self.user, self.product)
        response = self.client.delete('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(CartItem.objects.filter(user=self.user).exists())


class CheckoutTests(APITestCase):
    """Test order placement"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(name='Penny Loafer', price=Decimal('38500'))
        self.variant = TestDataFactory.create_variant(self.product, size='26.5', sku='PL-265')

    def test_checkout_snapshots_cart(self):
        TestDataFactory.create_cart_item(self.user, self.product, variant=self.variant, quantity=2)
        response = self.client.post('/api/v1/orders/', {
            'shipping_name': '山田 太郎',
            'shipping_address': '東京都千代田区',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], 77000)
        self.assertEqual(response.data['status'], 'pending')

        line = response.data['order_items'][0]
        self.assertEqual(line['product_name'], 'Penny Loafer')
        self.assertEqual(line['product_price'], 38500)
        self.assertEqual(line['variant_size'], '26.5')
        self.assertEqual(line['variant_sku'], 'PL-265')
        self.assertFalse(CartItem.objects.filter(user=self.user).exists())

        # Later catalog edits do not touch the snapshot
        self.product.name = 'Renamed'
        self.product.price = Decimal('1')
        self.product.save()
        snapshot = OrderItem.objects.get(order_id=response.data['id'])
        self.assertEqual((snapshot.product_name, snapshot.product_price), ('Penny Loafer', 38500))

    def test_checkout_with_empty_cart(self):
        response = self.client.post('/api/v1/orders/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cart is empty')
        self.assertFalse(Order.objects.exists())

    def test_order_list_and_detail_are_per_user(self):
        mine = TestDataFactory.create_order(self.user, items=[(self.product, 1)])
        theirs = TestDataFactory.create_order(TestDataFactory.create_user(), items=[(self.product, 1)])

        response = self.client.get('/api/v1/orders/')
        self.assertEqual([row['id'] for row in response.data], [mine.id])

        response = self.client.get(f'/api/v1/orders/{mine.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(f'/api/v1/orders/{theirs.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Order not found')


class AdminOrderTests(APITestCase):
    """Test the admin order workflow"""

    def setUp(self):
        super().setUp()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product()

    def test_list_filters_by_status(self):
        TestDataFactory.create_order(self.customer, items=[(self.product, 1)])
        shipped = TestDataFactory.create_order(self.customer, items=[(self.product, 1)], status='shipped')
        response = self.client.get('/api/v1/admin/orders/?status=shipped')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [shipped.id])
        self.assertEqual(response.data[0]['user_email'], self.customer.email)

    def test_valid_transition(self):
        order = TestDataFactory.create_order(self.customer, items=[(self.product, 1)])
        response = self.client.put(f'/api/v1/admin/orders/{order.id}/status/', {'status': 'processing'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'processing')
        log = AuditLog.objects.get(action='order_status')
        self.assertEqual(log.changes, {'status': {'old': 'pending', 'new': 'processing'}})

    def test_invalid_transition_conflicts(self):
        order = TestDataFactory.create_order(self.customer, items=[(self.product, 1)], status='completed')
        response = self.client.put(f'/api/v1/admin/orders/{order.id}/status/', {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Cannot change order status from completed to pending')
        order.refresh_from_db()
        self.assertEqual(order.status, 'completed')

    def test_unknown_status(self):
        order = TestDataFactory.create_order(self.customer, items=[(self.product, 1)])
        response = self.client.put(f'/api/v1/admin/orders/{order.id}/status/', {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_order(self):
        response = self.client.put('/api/v1/admin/orders/999999/status/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_customer_forbidden(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/v1/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
