import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from storefront.core.utils import create_audit_log
from .models import CartEvent, CartItem, Order, OrderItem
from .serializers import (
    CartAddSerializer, CartItemSerializer, CartQuantitySerializer, CheckoutSerializer,
    OrderSerializer, OrderStatusSerializer,
)

logger = logging.getLogger(__name__)


def cart_queryset(user):
    return CartItem.objects.filter(user=user).select_related('product', 'variant')


def order_queryset():
    return Order.objects.select_related('user').prefetch_related('order_items')


@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart(request):
    """Get the caller's cart, add a line, or clear it"""
    if request.method == 'GET':
        return Response(CartItemSerializer(cart_queryset(request.user), many=True).data)

    if request.method == 'DELETE':
        cart_queryset(request.user).delete()
        return Response({'success': True})

    serializer = CartAddSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product = serializer.validated_data['product']
    variant = serializer.validated_data.get('variant')
    quantity = serializer.validated_data['quantity']

    with transaction.atomic():
        lines = CartItem.objects.filter(user=request.user, product=product, variant=variant)
        item = None
        if not lines.select_for_update().exists():
            try:
                with transaction.atomic():
                    item = CartItem.objects.create(
                        user=request.user, product=product, variant=variant, quantity=quantity
                    )
            except IntegrityError:
                # A concurrent request created the line first
                logger.info(f"Cart line for user {request.user.id} product {product.id} already exists, incrementing")

        if item is None:
            # F() keeps concurrent adds from losing an update
            lines.update(quantity=F('quantity') + quantity)
            item = lines.select_related('product', 'variant').get()
            response_status = status.HTTP_200_OK
        else:
            response_status = status.HTTP_201_CREATED
        CartEvent.objects.create(user=request.user, product=product, variant=variant, action='add', quantity=quantity)

    return Response(CartItemSerializer(item).data, status=response_status)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart_item_detail(request, pk):
    """Set the quantity of, or remove, one of the caller's cart lines"""
    item = cart_queryset(request.user).filter(pk=pk).first()
    if item is None:
        return Response({'error': 'Cart item not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'DELETE':
        CartEvent.objects.create(
            user=request.user, product=item.product, variant=item.variant, action='remove', quantity=item.quantity
        )
        item.delete()
        return Response({'success': True})

    serializer = CartQuantitySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_quantity = serializer.validated_data['quantity']
    delta = new_quantity - item.quantity
    item.quantity = new_quantity
    item.save(update_fields=['quantity', 'updated_at'])
    if delta:
        CartEvent.objects.create(
            user=request.user, product=item.product, variant=item.variant, action='update', quantity=delta
        )
    return Response(CartItemSerializer(item).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List the caller's orders or check out the current cart"""
    if request.method == 'GET':
        orders = order_queryset().filter(user=request.user)
        return Response(OrderSerializer(orders, many=True).data)

    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        items = list(cart_queryset(request.user).select_for_update())
        if not items:
            return Response({'error': 'Cart is empty'}, status=status.HTTP_400_BAD_REQUEST)

        total_amount = sum(item.line_total for item in items)
        order = Order.objects.create(user=request.user, total_amount=total_amount, **serializer.validated_data)
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=item.product,
                product_name=item.product.name,
                product_price=int(item.product.price),
                variant_size=item.variant.size if item.variant else None,
                variant_sku=item.variant.sku if item.variant else None,
                quantity=item.quantity,
            )
            for item in items
        ])
        CartItem.objects.filter(user=request.user).delete()

    logger.info(f"Order #{order.id} placed by user {request.user.id}: {len(items)} line(s), total {total_amount}")
    return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order = order_queryset().filter(pk=pk, user=request.user).first()
    if order is None:
        return Response({'error': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(OrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_list(request):
    """All orders newest first; ?status= filters"""
    orders = order_queryset()
    status_filter = request.query_params.get('status', None)
    if status_filter:
        orders = orders.filter(status=status_filter)
    return Response(OrderSerializer(orders, many=True).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_order_status(request, pk):
    """Move an order along its status workflow"""
    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    new_status = serializer.validated_data['status']

    with transaction.atomic():
        order = Order.objects.select_for_update().filter(pk=pk).first()
        if order is None:
            return Response({'error': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)

        old_status = order.status
        if not order.can_transition_to(new_status):
            return Response(
                {'error': f'Cannot change order status from {old_status} to {new_status}'},
                status=status.HTTP_409_CONFLICT,
            )
        order.status = new_status
        order.save(update_fields=['status', 'updated_at'])

    create_audit_log(
        request=request,
        action='order_status',
        model_name='Order',
        object_id=order.id,
        object_name=f"Order #{order.id}",
        changes={'status': {'old': old_status, 'new': new_status}},
    )
    logger.info(f"Order #{order.id} status {old_status} -> {new_status}")
    return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)
