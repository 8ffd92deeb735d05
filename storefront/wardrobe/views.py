import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from storefront.core.utils import pick_allowed_fields
from storefront.core.views import upload_url_response
from . import analysis, gemini_service
from .models import WardrobeItem, StylingPhoto, FootMeasurement, BrandSizeMapping
from .serializers import (
    WardrobeItemSerializer, SellSerializer, StylingPhotoSerializer, FootMeasurementSerializer,
    BrandSizeMappingSerializer, SizeRecommendationSerializer, ImagePayloadSerializer,
    ScrapeUrlSerializer, ChatSerializer,
)
from .sizing import recommend_size

logger = logging.getLogger(__name__)

ITEM_STATUS_FILTERS = {
    'active': {'is_discarded': False, 'is_sold': False},
    'sold': {'is_sold': True, 'is_discarded': False},
    'discarded': {'is_discarded': True},
}


def get_owned(model, user, pk):
    """Row ``pk`` of ``model`` if it belongs to ``user``, else None"""
    return model.objects.filter(owner=user, pk=pk).first()


def not_found(label):
    return Response({'error': f'{label} not found'}, status=status.HTTP_404_NOT_FOUND)


# Items
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def item_list_create(request):
    """List the caller's wardrobe or add an item"""
    if request.method == 'GET':
        items = WardrobeItem.objects.filter(owner=request.user)

        category = request.query_params.get('category')
        if category:
            items = items.filter(category=category)

        item_status = request.query_params.get('status')
        if item_status:
            if item_status not in ITEM_STATUS_FILTERS:
                return Response(
                    {'error': f"status must be one of: {', '.join(ITEM_STATUS_FILTERS)}"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            items = items.filter(**ITEM_STATUS_FILTERS[item_status])

        return Response(WardrobeItemSerializer(items, many=True).data)

    serializer = WardrobeItemSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(owner=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def item_detail(request, pk):
    item = get_owned(WardrobeItem, request.user, pk)
    if item is None:
        return not_found('Item')

    if request.method == 'GET':
        return Response(WardrobeItemSerializer(item).data)

    if request.method == 'DELETE':
        item.delete()
        return Response({'success': True})

    serializer = WardrobeItemSerializer(item, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def item_sell(request, pk):
    """Record the sale of an item"""
    item = get_owned(WardrobeItem, request.user, pk)
    if item is None:
        return not_found('Item')

    serializer = SellSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    for field, value in serializer.validated_data.items():
        setattr(item, field, value)
    item.is_sold = True
    item.save()
    return Response(WardrobeItemSerializer(item).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def item_discard(request, pk):
    item = get_owned(WardrobeItem, request.user, pk)
    if item is None:
        return not_found('Item')

    item.is_discarded = True
    item.discarded_at = timezone.now()
    item.save(update_fields=['is_discarded', 'discarded_at', 'updated_at'])
    return Response(WardrobeItemSerializer(item).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def item_restore(request, pk):
    """Put a sold or discarded item back into the active wardrobe"""
    item = get_owned(WardrobeItem, request.user, pk)
    if item is None:
        return not_found('Item')

    item.is_discarded = False
    item.discarded_at = None
    item.is_sold = False
    item.sold_date = None
    item.sold_price = None
    item.sold_currency = None
    item.sold_location = None
    item.save()
    return Response(WardrobeItemSerializer(item).data)


# Styling photos
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def styling_photo_list_create(request):
    if request.method == 'GET':
        photos = StylingPhoto.objects.filter(owner=request.user).prefetch_related('worn_items')
        return Response(StylingPhotoSerializer(photos, many=True).data)

    serializer = StylingPhotoSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        photo = serializer.save()
        return Response(StylingPhotoSerializer(photo).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def styling_photo_delete(request, pk):
    photo = get_owned(StylingPhoto, request.user, pk)
    if photo is None:
        return not_found('Styling photo')
    photo.delete()
    return Response({'success': True})


# Foot measurements
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def foot_measurement_list_create(request):
    if request.method == 'GET':
        measurements = FootMeasurement.objects.filter(owner=request.user)
        return Response(FootMeasurementSerializer(measurements, many=True).data)

    serializer = FootMeasurementSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(owner=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def foot_measurement_detail(request, pk):
    measurement = get_owned(FootMeasurement, request.user, pk)
    if measurement is None:
        return not_found('Foot measurement')

    if request.method == 'DELETE':
        measurement.delete()
        return Response({'success': True})

    serializer = FootMeasurementSerializer(measurement, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Brand size mappings
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def brand_size_mapping_list_create(request):
    if request.method == 'GET':
        mappings = BrandSizeMapping.objects.filter(owner=request.user)
        return Response(BrandSizeMappingSerializer(mappings, many=True).data)

    serializer = BrandSizeMappingSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(owner=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def brand_size_mapping_detail(request, pk):
    mapping = get_owned(BrandSizeMapping, request.user, pk)
    if mapping is None:
        return not_found('Brand size mapping')

    if request.method == 'DELETE':
        mapping.delete()
        return Response({'success': True})

    updates = pick_allowed_fields(request.data, BrandSizeMappingSerializer.Meta.fields)
    if not updates:
        return Response({'error': 'No fields to update'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = BrandSizeMappingSerializer(mapping, data=updates, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def size_recommendation(request):
    """Recommend a shoe size for a product from the caller's foot measurements"""
    serializer = SizeRecommendationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    recommendation = recommend_size(
        serializer.validated_data['product_name'],
        FootMeasurement.objects.filter(owner=request.user),
        BrandSizeMapping.objects.filter(owner=request.user),
    )
    return Response(recommendation)


# Analysis
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def portfolio_analysis(request):
    range_key = request.query_params.get('range', 'ALL')
    if range_key not in analysis.SALES_RANGES:
        return Response(
            {'error': f"range must be one of: {', '.join(analysis.SALES_RANGES)}"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    items = WardrobeItem.objects.filter(owner=request.user)
    return Response(analysis.portfolio_analysis(items, range_key, today=timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_analysis(request):
    items = WardrobeItem.objects.filter(owner=request.user)
    return Response(analysis.sales_analysis(items, today=timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def export_items(request):
    """Flat item rows for spreadsheet export"""
    items = WardrobeItem.objects.filter(owner=request.user).order_by('created_at')
    return Response(analysis.export_rows(items))


# AI recognition
def gemini_response(call, *args):
    """Run a Gemini helper and map its failures onto HTTP errors"""
    try:
        return Response(call(*args))
    except (gemini_service.InvalidImageError, gemini_service.BlockedUrlError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except gemini_service.GeminiNotConfigured:
        return Response({'error': 'AI service is not configured'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    except gemini_service.GeminiError as e:
        logger.error(f"AI request failed: {str(e)}")
        return Response({'error': 'AI service request failed'}, status=status.HTTP_502_BAD_GATEWAY)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def scrape_url(request):
    """Extract product details from a shop page"""
    serializer = ScrapeUrlSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return gemini_response(gemini_service.scrape_product_url, serializer.validated_data['url'])


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def extract_tag(request):
    """Read brand, size and materials from a photo of a garment tag"""
    serializer = ImagePayloadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return gemini_response(gemini_service.extract_tag_info, serializer.validated_data['imageBase64'])


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def analyze_image(request):
    """Suggest item fields from a product photo"""
    serializer = ImagePayloadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return gemini_response(gemini_service.analyze_product_image, serializer.validated_data['imageBase64'])


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ai_chat(request):
    """Stylist chat grounded on the caller's profile and active wardrobe"""
    serializer = ChatSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    items = WardrobeItem.objects.filter(owner=request.user, is_discarded=False, is_sold=False)

    def reply():
        return {'reply': gemini_service.chat(
            request.user,
            serializer.validated_data['message'],
            serializer.validated_data['history'],
            list(items),
        )}

    return gemini_response(reply)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def wardrobe_upload_url(request):
    """Pre-signed upload URL for the caller's wardrobe photos"""
    return upload_url_response(request, f'wardrobe/{request.user.id}')
