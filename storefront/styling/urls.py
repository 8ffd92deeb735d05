from django.urls import path
from .views import (
    styling_list, styling_detail, admin_styling_list_create, admin_styling_detail,
    admin_styling_move, admin_styling_images, admin_styling_image_delete,
)

urlpatterns = [
    path('styling/', styling_list, name='styling-list'),
    path('styling/<slug:slug>/', styling_detail, name='styling-detail'),

    path('admin/styling/', admin_styling_list_create, name='admin-styling-list-create'),
    path('admin/styling/<int:pk>/', admin_styling_detail, name='admin-styling-detail'),
    path('admin/styling/<int:pk>/move/', admin_styling_move, name='admin-styling-move'),
    path('admin/styling/<int:pk>/images/', admin_styling_images, name='admin-styling-images'),
    path('admin/styling-images/<int:pk>/', admin_styling_image_delete, name='admin-styling-image-delete'),
]
