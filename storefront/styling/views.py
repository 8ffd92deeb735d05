import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from storefront.catalog.serializers import ImageUrlsSerializer
from storefront.core.cache_signals import suspend_cache_signals
from storefront.core.cache_utils import STYLING_LIST_CACHE_TTL, get_or_build, invalidate_styling_cache
from storefront.core.utils import create_audit_log, move_in_order, pick_allowed_fields, replace_images
from .models import Styling, StylingImage
from .serializers import StylingImageSerializer, StylingSerializer, STYLING_WRITE_FIELDS

logger = logging.getLogger(__name__)


def styling_queryset():
    return Styling.objects.prefetch_related('styling_images')


@api_view(['GET'])
@permission_classes([AllowAny])
def styling_list(request):
    def build():
        return StylingSerializer(styling_queryset(), many=True).data

    return Response(get_or_build('styling_list', build, STYLING_LIST_CACHE_TTL))


@api_view(['GET'])
@permission_classes([AllowAny])
def styling_detail(request, slug):
    styling = styling_queryset().filter(slug=slug).first()
    if styling is None:
        return Response({'error': 'Styling not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(StylingSerializer(styling).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_styling_list_create(request):
    """List or create styling entries"""
    if request.method == 'GET':
        return Response(StylingSerializer(styling_queryset(), many=True).data)

    serializer = StylingSerializer(data=pick_allowed_fields(request.data, STYLING_WRITE_FIELDS))
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    styling = serializer.save()
    create_audit_log(
        request=request,
        action='create',
        model_name='Styling',
        object_id=styling.id,
        object_name=styling.title or styling.slug,
    )
    return Response(StylingSerializer(styling).data, status=status.HTTP_201_CREATED)


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_styling_detail(request, pk):
    styling = get_object_or_404(Styling, pk=pk)

    if request.method == 'DELETE':
        styling_id, title = styling.id, styling.title or styling.slug
        styling.delete()
        create_audit_log(request=request, action='delete', model_name='Styling', object_id=styling_id, object_name=title)
        return Response({'success': True})

    updates = pick_allowed_fields(request.data, STYLING_WRITE_FIELDS)
    if not updates:
        return Response({'error': 'No fields to update'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = StylingSerializer(styling, data=updates, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    styling = serializer.save()
    create_audit_log(
        request=request,
        action='update',
        model_name='Styling',
        object_id=styling.id,
        object_name=styling.title or styling.slug,
        changes={field: str(value) for field, value in updates.items()},
    )
    return Response(StylingSerializer(styling_queryset().get(pk=styling.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_styling_move(request, pk):
    styling = get_object_or_404(Styling, pk=pk)
    direction = request.data.get('direction')
    if direction not in ('up', 'down'):
        return Response({'error': 'direction must be "up" or "down"'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        moved = move_in_order(Styling.objects.select_for_update().order_by('display_order', '-created_at'), styling, direction)
    if moved:
        create_audit_log(
            request=request,
            action='reorder',
            model_name='Styling',
            object_id=styling.id,
            object_name=styling.title or styling.slug,
            changes={'direction': direction},
        )
    return Response(StylingSerializer(styling_queryset(), many=True).data)


@api_view(['GET', 'POST', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_styling_images(request, pk):
    """List, add to, or replace a styling entry's images"""
    styling = get_object_or_404(Styling, pk=pk)

    if request.method == 'GET':
        return Response(StylingImageSerializer(styling.styling_images.all(), many=True).data)

    if request.method == 'POST':
        serializer = StylingImageSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        image = serializer.save(styling=styling)
        return Response(StylingImageSerializer(image).data, status=status.HTTP_201_CREATED)

    serializer = ImageUrlsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with suspend_cache_signals():
        with transaction.atomic():
            images = replace_images(StylingImage, 'styling', styling, serializer.validated_data['urls'])
    invalidate_styling_cache()

    create_audit_log(
        request=request,
        action='images_replace',
        model_name='Styling',
        object_id=styling.id,
        object_name=styling.title or styling.slug,
        changes={'count': len(images)},
    )
    return Response(StylingImageSerializer(images, many=True).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_styling_image_delete(request, pk):
    image = get_object_or_404(StylingImage, pk=pk)
    image.delete()
    return Response({'success': True})
