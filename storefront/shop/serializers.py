from rest_framework import serializers
from storefront.catalog.models import Product, ProductVariant
from storefront.catalog.serializers import ProductVariantSerializer
from .models import CartItem, Order, OrderItem


class CartProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'price', 'image_url', 'kind', 'stock']


class CartItemSerializer(serializers.ModelSerializer):
    products = CartProductSerializer(source='product', read_only=True)
    product_variants = ProductVariantSerializer(source='variant', read_only=True)
    line_total = serializers.IntegerField(read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'product_id', 'variant_id', 'quantity', 'products', 'product_variants',
                  'line_total', 'created_at', 'updated_at']


class CartAddSerializer(serializers.Serializer):
    product_id = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), source='product')
    variant_id = serializers.PrimaryKeyRelatedField(
        queryset=ProductVariant.objects.all(), source='variant', allow_null=True, required=False, default=None
    )
    quantity = serializers.IntegerField(min_value=1, default=1)

    def validate(self, attrs):
        variant = attrs.get('variant')
        if variant is not None and variant.product_id != attrs['product'].id:
            raise serializers.ValidationError({'variant_id': 'Variant does not belong to this product'})
        return attrs


class CartQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'order_id', 'product_id', 'product_name', 'product_price', 'variant_size',
                  'variant_sku', 'quantity', 'line_total', 'created_at']


class OrderSerializer(serializers.ModelSerializer):
    order_items = OrderItemSerializer(many=True, read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True, default=None)

    class Meta:
        model = Order
        fields = ['id', 'user_id', 'user_email', 'total_amount', 'status', 'shipping_name',
                  'shipping_postal_code', 'shipping_address', 'shipping_phone', 'order_items',
                  'created_at', 'updated_at']
        read_only_fields = ['total_amount', 'status']


class CheckoutSerializer(serializers.Serializer):
    shipping_name = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    shipping_postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    shipping_address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    shipping_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
