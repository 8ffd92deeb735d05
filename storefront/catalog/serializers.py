from rest_framework import serializers
from .models import Category, Product, ProductImage, ProductVariant, MAX_PRODUCT_IMAGES

# Fields an admin may set on a product
PRODUCT_WRITE_FIELDS = [
    'name', 'slug', 'description', 'price', 'image_url', 'category_id', 'kind',
    'stock', 'featured', 'display_order',
]


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'created_at']


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ['id', 'product_id', 'url', 'display_order', 'created_at']
        read_only_fields = ['product_id']


class ProductVariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductVariant
        fields = ['id', 'product_id', 'size', 'stock', 'sku', 'created_at', 'updated_at']
        read_only_fields = ['product_id']


class ProductSerializer(serializers.ModelSerializer):
    category_id = serializers.PrimaryKeyRelatedField(
        source='category', queryset=Category.objects.all(), allow_null=True, required=False
    )
    product_images = ProductImageSerializer(many=True, read_only=True)
    product_variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'description', 'price', 'image_url', 'category_id', 'kind',
                  'stock', 'featured', 'display_order', 'product_images', 'product_variants',
                  'created_at', 'updated_at']

    def validate_price(self, value):
        # Prices are whole yen
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative")
        if value != value.to_integral_value():
            raise serializers.ValidationError("Price must be a whole number of yen")
        return value


class ImageUrlsSerializer(serializers.Serializer):
    """Ordered URL list used to replace an image gallery"""
    urls = serializers.ListField(
        child=serializers.CharField(allow_blank=True, max_length=1000),
        max_length=MAX_PRODUCT_IMAGES,
    )


class VariantRowSerializer(serializers.Serializer):
    size = serializers.CharField(allow_blank=True, max_length=50)
    stock = serializers.IntegerField(min_value=0, default=0)
    sku = serializers.CharField(allow_blank=True, allow_null=True, required=False, max_length=100)


class VariantSetSerializer(serializers.Serializer):
    """Full variant set used to replace a product's variants"""
    variants = VariantRowSerializer(many=True)
