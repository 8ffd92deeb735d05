from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from storefront.catalog.models import Product, ProductVariant


class CartItem(models.Model):
    """One cart line per (user, product, variant)"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='cart_items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, null=True, blank=True, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} - {self.product.name} x {self.quantity}"

    @property
    def line_total(self):
        return int(self.product.price) * self.quantity

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'product', 'variant'], name='unique_cart_line'),
            # NULL variants are distinct in the constraint above
            models.UniqueConstraint(
                fields=['user', 'product'], condition=models.Q(variant__isnull=True), name='unique_cart_line_no_variant'
            ),
        ]


class CartEvent(models.Model):
    """Append-only record of cart activity, kept after checkout clears the cart"""
    ACTION_CHOICES = [
        ('add', 'Add'),
        ('update', 'Update'),
        ('remove', 'Remove'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='cart_events')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_events')
    variant = models.ForeignKey(ProductVariant, on_delete=models.SET_NULL, null=True, blank=True, related_name='cart_events')
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    quantity = models.IntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'cart_events'
        ordering = ['-created_at']


class Order(models.Model):
    """Customer order"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    # Allowed status changes; completed and cancelled are terminal
    STATUS_TRANSITIONS = {
        'pending': {'processing', 'shipped', 'cancelled'},
        'processing': {'shipped', 'cancelled'},
        'shipped': {'completed', 'cancelled'},
        'completed': set(),
        'cancelled': set(),
    }

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='orders')
    total_amount = models.IntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    shipping_name = models.CharField(max_length=200, blank=True, null=True)
    shipping_postal_code = models.CharField(max_length=20, blank=True, null=True)
    shipping_address = models.TextField(blank=True, null=True)
    shipping_phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Order #{self.id} ({self.status})"

    def can_transition_to(self, new_status):
        return new_status in self.STATUS_TRANSITIONS.get(self.status, set())

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']


class OrderItem(models.Model):
    """Order line; name, price and size are snapshots taken at checkout"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='order_items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    product_name = models.CharField(max_length=200)
    product_price = models.IntegerField()
    variant_size = models.CharField(max_length=50, blank=True, null=True)
    variant_sku = models.CharField(max_length=100, blank=True, null=True)
    quantity = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    @property
    def line_total(self):
        return self.product_price * self.quantity

    class Meta:
        db_table = 'order_items'
        ordering = ['id']
