from django.contrib import admin
from .models import CartItem, CartEvent, Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'product_name', 'product_price', 'variant_size', 'variant_sku', 'quantity']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'total_amount', 'status', 'shipping_name', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['user__email', 'shipping_name', 'shipping_phone']
    ordering = ['-created_at']
    inlines = [OrderItemInline]


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ['user', 'product', 'variant', 'quantity', 'updated_at']
    search_fields = ['user__email', 'product__name']


@admin.register(CartEvent)
class CartEventAdmin(admin.ModelAdmin):
    list_display = ['user', 'product', 'variant', 'action', 'quantity', 'created_at']
    list_filter = ['action', 'created_at']
    readonly_fields = ['user', 'product', 'variant', 'action', 'quantity', 'created_at']
