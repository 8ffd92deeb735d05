import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from storefront.core.cache_signals import suspend_cache_signals
from storefront.core.cache_utils import (
    PRODUCTS_LIST_CACHE_TTL, get_or_build, invalidate_products_cache,
)
from storefront.core.utils import create_audit_log, move_in_order, pick_allowed_fields, replace_images
from .filters import ProductFilter
from .models import Category, Product, ProductImage, ProductVariant
from .serializers import (
    CategorySerializer, ImageUrlsSerializer, ProductImageSerializer, ProductSerializer,
    ProductVariantSerializer, VariantSetSerializer, PRODUCT_WRITE_FIELDS,
)

logger = logging.getLogger(__name__)


def product_queryset():
    return Product.objects.select_related('category').prefetch_related('product_images', 'product_variants')


# Public catalog
@api_view(['GET'])
@permission_classes([AllowAny])
def category_list(request):
    """List all categories by name"""
    serializer = CategorySerializer(Category.objects.all(), many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([AllowAny])
def category_detail(request, slug):
    category = Category.objects.filter(slug=slug).first()
    if category is None:
        return Response({'error': 'Category not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(CategorySerializer(category).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_list(request):
    """List products in display order; ?category=<kind>&featured=true"""
    params = {
        'category': request.query_params.get('category', ''),
        'category_id': request.query_params.get('category_id', ''),
        'featured': request.query_params.get('featured', ''),
    }

    filterset = ProductFilter(request.query_params, queryset=product_queryset())
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    def build():
        return ProductSerializer(filterset.qs, many=True).data

    return Response(get_or_build('products_list', build, PRODUCTS_LIST_CACHE_TTL, **params))


@api_view(['GET'])
@permission_classes([AllowAny])
def product_detail(request, slug):
    product = product_queryset().filter(slug=slug).first()
    if product is None:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(ProductSerializer(product).data)


# Admin products
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_create(request):
    serializer = ProductSerializer(data=pick_allowed_fields(request.data, PRODUCT_WRITE_FIELDS))
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product = serializer.save()
    create_audit_log(
        request=request,
        action='create',
        model_name='Product',
        object_id=product.id,
        object_name=product.name,
        changes={'price': str(product.price), 'slug': product.slug},
    )
    logger.info(f"Created product {product.slug}")
    return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_detail(request, pk):
    """Update only the fields that were sent, or delete the product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'DELETE':
        product_id, name = product.id, product.name
        product.delete()
        create_audit_log(request=request, action='delete', model_name='Product', object_id=product_id, object_name=name)
        return Response({'success': True})

    updates = pick_allowed_fields(request.data, PRODUCT_WRITE_FIELDS)
    if not updates:
        return Response({'error': 'No fields to update'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ProductSerializer(product, data=updates, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product = serializer.save()
    create_audit_log(
        request=request,
        action='update',
        model_name='Product',
        object_id=product.id,
        object_name=product.name,
        changes={field: str(value) for field, value in updates.items()},
    )
    return Response(ProductSerializer(product_queryset().get(pk=product.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_move(request, pk):
    """Swap a product with its neighbour in the storefront order"""
    product = get_object_or_404(Product, pk=pk)
    direction = request.data.get('direction')
    if direction not in ('up', 'down'):
        return Response({'error': 'direction must be "up" or "down"'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        moved = move_in_order(Product.objects.select_for_update().order_by('display_order', '-created_at'), product, direction)
    if moved:
        create_audit_log(
            request=request,
            action='reorder',
            model_name='Product',
            object_id=product.id,
            object_name=product.name,
            changes={'direction': direction},
        )
    return Response(ProductSerializer(product_queryset(), many=True).data)


# Admin variants
@api_view(['GET', 'POST', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_variants(request, pk):
    """List, add to, or replace a product's size variants"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductVariantSerializer(product.product_variants.all(), many=True).data)

    if request.method == 'POST':
        serializer = ProductVariantSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        variant = serializer.save(product=product)
        return Response(ProductVariantSerializer(variant).data, status=status.HTTP_201_CREATED)

    serializer = VariantSetSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    rows = [row for row in serializer.validated_data['variants'] if row['size'].strip()]
    with transaction.atomic():
        product.product_variants.all().delete()
        for row in rows:
            ProductVariant.objects.create(
                product=product,
                size=row['size'].strip(),
                stock=row.get('stock', 0),
                sku=row.get('sku') or None,
            )
    create_audit_log(
        request=request,
        action='variants_replace',
        model_name='Product',
        object_id=product.id,
        object_name=product.name,
        changes={'sizes': [row['size'].strip() for row in rows]},
    )
    return Response(ProductVariantSerializer(product.product_variants.all(), many=True).data)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_variant_detail(request, pk):
    """Update a variant keeping unspecified fields, or delete it"""
    variant = ProductVariant.objects.filter(pk=pk).first()
    if variant is None:
        return Response({'error': 'Variant not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'DELETE':
        variant.delete()
        return Response({'success': True})

    updates = {field: value for field, value in pick_allowed_fields(request.data, ['size', 'stock', 'sku']).items()
               if value is not None}
    serializer = ProductVariantSerializer(variant, data=updates, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer.save()
    return Response(serializer.data)


# Admin images
@api_view(['GET', 'POST', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_images(request, pk):
    """List, add to, or replace a product's image gallery"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductImageSerializer(product.product_images.all(), many=True).data)

    if request.method == 'POST':
        serializer = ProductImageSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        display_order = serializer.validated_data.get('display_order', 1)
        if product.product_images.filter(display_order=display_order).exists():
            return Response(
                {'error': f'An image already occupies position {display_order}'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        image = serializer.save(product=product)
        return Response(ProductImageSerializer(image).data, status=status.HTTP_201_CREATED)

    serializer = ImageUrlsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with suspend_cache_signals():
        with transaction.atomic():
            images = replace_images(ProductImage, 'product', product, serializer.validated_data['urls'])
    invalidate_products_cache()

    create_audit_log(
        request=request,
        action='images_replace',
        model_name='Product',
        object_id=product.id,
        object_name=product.name,
        changes={'count': len(images)},
    )
    return Response(ProductImageSerializer(images, many=True).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_image_delete(request, pk):
    image = get_object_or_404(ProductImage, pk=pk)
    image.delete()
    return Response({'success': True})
