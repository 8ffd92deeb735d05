from django.urls import path
from .views import (
    cart, cart_item_detail, order_list_create, order_detail,
    admin_order_list, admin_order_status,
)

urlpatterns = [
    # Cart
    path('cart/', cart, name='cart'),
    path('cart/<int:pk>/', cart_item_detail, name='cart-item-detail'),

    # Orders
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),

    # Admin orders
    path('admin/orders/', admin_order_list, name='admin-order-list'),
    path('admin/orders/<int:pk>/status/', admin_order_status, name='admin-order-status'),
]
