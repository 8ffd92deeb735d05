from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

MAX_PRODUCT_IMAGES = 6


class Category(models.Model):
    """Product categories"""
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    description = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Product(models.Model):
    """Product shown in the shop"""
    KIND_CHOICES = [
        ('shoes', 'Shoes'),
        ('accessory', 'Accessory'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=200, unique=True)
    description = models.TextField(blank=True, default='')
    price = models.DecimalField(max_digits=10, decimal_places=2)
    image_url = models.CharField(max_length=1000, blank=True, default='')
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    kind = models.CharField(max_length=20, choices=KIND_CHOICES, blank=True, null=True)
    stock = models.IntegerField(default=0)
    featured = models.BooleanField(default=False)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'products'
        ordering = ['display_order', '-created_at']


class ProductImage(models.Model):
    """Gallery image of a product, positions 1..6"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='product_images')
    url = models.CharField(max_length=1000)
    display_order = models.PositiveSmallIntegerField(
        default=1, validators=[MinValueValidator(1), MaxValueValidator(MAX_PRODUCT_IMAGES)]
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product.name} #{self.display_order}"

    class Meta:
        db_table = 'product_images'
        ordering = ['display_order']
        constraints = [
            models.UniqueConstraint(fields=['product', 'display_order'], name='unique_product_image_order'),
        ]


class ProductVariant(models.Model):
    """Size variant of a product"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='product_variants')
    size = models.CharField(max_length=50)
    stock = models.PositiveIntegerField(default=0)
    sku = models.CharField(max_length=100, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.size}"

    class Meta:
        db_table = 'product_variants'
        ordering = ['size']
