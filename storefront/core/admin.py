from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'full_name', 'is_active', 'is_staff', 'onboarding_completed', 'created_at']
    list_filter = ['is_active', 'is_staff', 'gender', 'onboarding_completed']
    search_fields = ['username', 'email', 'full_name', 'phone']
    ordering = ['-created_at']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Contact', {'fields': ('full_name', 'phone', 'postal_code', 'address', 'gender', 'birth_date')}),
        ('Onboarding', {'fields': (
            'height_cm', 'weight_kg', 'age', 'body_type', 'body_features', 'body_features_note',
            'onboarding_completed', 'display_initial', 'is_wardrobe_public', 'is_styling_public',
        )}),
    )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'object_name', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__email', 'model_name', 'object_id', 'object_name']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_name', 'changes', 'ip_address', 'created_at']
