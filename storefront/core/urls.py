from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, profile,
    admin_profile_list, admin_user_create, admin_profile_set_admin,
    admin_profile_delete, admin_upload_url, audit_log_list,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),

    # Own profile
    path('profile/', profile, name='profile'),

    # Admin account management
    path('admin/profiles/', admin_profile_list, name='admin-profile-list'),
    path('admin/users/', admin_user_create, name='admin-user-create'),
    path('admin/profiles/<int:pk>/admin/', admin_profile_set_admin, name='admin-profile-set-admin'),
    path('admin/profiles/<int:pk>/', admin_profile_delete, name='admin-profile-delete'),

    # Uploads and audit trail
    path('admin/upload-url/', admin_upload_url, name='admin-upload-url'),
    path('admin/audit-logs/', audit_log_list, name='audit-log-list'),
]
