"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from storefront.catalog.models import Category, Product, ProductImage, ProductVariant
from storefront.styling.models import Styling
from storefront.shop.models import CartItem, Order, OrderItem
from storefront.reports.models import PageView
from storefront.wardrobe.models import WardrobeItem, FootMeasurement, BrandSizeMapping
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', is_staff=False, **extra):
        """Create a test user; the email doubles as the username"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6)}@test.com'
        return User.objects.create_user(
            username=email,
            email=email,
            password=password,
            is_staff=is_staff,
            **extra
        )

    @staticmethod
    def create_admin(email=None):
        return TestDataFactory.create_user(email=email, is_staff=True)

    @staticmethod
    def create_category(name=None, slug=None):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            slug=slug or f'category-{TestDataFactory.random_string(8)}',
            description=f'Test category {name}'
        )

    @staticmethod
    def create_product(name=None, slug=None, price=None, kind='shoes', featured=False,
                       display_order=0, category=None, stock=10):
        """Create a test product"""
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        return Product.objects.create(
            name=name,
            slug=slug or f'product-{TestDataFactory.random_string(8)}',
            description=f'Test product {name}',
            price=price if price is not None else Decimal('12000'),
            image_url='https://example.com/product.jpg',
            category=category,
            kind=kind,
            stock=stock,
            featured=featured,
            display_order=display_order,
        )

    @staticmethod
    def create_product_image(product, display_order=1, url=None):
        return ProductImage.objects.create(
            product=product,
            url=url or f'https://example.com/{TestDataFactory.random_string(8)}.jpg',
            display_order=display_order,
        )

    @staticmethod
    def create_variant(product, size='26.0', stock=5, sku=None):
        return ProductVariant.objects.create(product=product, size=size, stock=stock, sku=sku)

    @staticmethod
    def create_styling(title=None, slug=None, display_order=0):
        """Create a test styling entry"""
        if not title:
            title = f'Styling {TestDataFactory.random_string(6)}'
        return Styling.objects.create(
            title=title,
            slug=slug or f'styling-{TestDataFactory.random_string(8)}',
            description='Test styling',
            image_url='https://example.com/styling.jpg',
            display_order=display_order,
        )

    @staticmethod
    def create_cart_item(user, product, variant=None, quantity=1):
        return CartItem.objects.create(user=user, product=product, variant=variant, quantity=quantity)

    @staticmethod
    def create_order(user, items=None, status='pending'):
        """Create an order; ``items`` is a list of (product, quantity) pairs"""
        items = items or []
        total = sum(int(product.price) * quantity for product, quantity in items)
        order = Order.objects.create(
            user=user,
            total_amount=total,
            status=status,
            shipping_name='Test Customer',
            shipping_postal_code='100-0001',
            shipping_address='Tokyo',
            shipping_phone='0312345678',
        )
        for product, quantity in items:
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                product_price=int(product.price),
                quantity=quantity,
            )
        return order

    @staticmethod
    def create_page_view(page_path='/', session_id=None, user=None, referrer='direct', page_title=''):
        return PageView.objects.create(
            page_path=page_path,
            page_title=page_title,
            session_id=session_id or f'sess-{TestDataFactory.random_string(8)}',
            user=user,
            referrer=referrer,
        )

    @staticmethod
    def create_wardrobe_item(owner, name=None, **fields):
        """Create a test wardrobe item"""
        if not name:
            name = f'Item {TestDataFactory.random_string(6)}'
        fields.setdefault('category', 'シューズ')
        return WardrobeItem.objects.create(owner=owner, name=name, **fields)

    @staticmethod
    def create_foot_measurement(owner, length_mm=Decimal('255.0'), is_active=True, foot_type='right'):
        return FootMeasurement.objects.create(
            owner=owner,
            foot_type=foot_type,
            length_mm=length_mm,
            width_mm=Decimal('100.0'),
            is_active=is_active,
        )

    @staticmethod
    def create_brand_size_mapping(owner, brand_name='Alden', size='8', size_system='US'):
        return BrandSizeMapping.objects.create(
            owner=owner,
            brand_name=brand_name,
            size=size,
            size_system=size_system,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()


class APITestCase(TestCase):
    """TestCase with a fresh cache and an unauthenticated API client"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
