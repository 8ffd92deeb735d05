from rest_framework import serializers
from .models import WardrobeItem, StylingPhoto, FootMeasurement, BrandSizeMapping


class WardrobeItemSerializer(serializers.ModelSerializer):
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = WardrobeItem
        fields = [
            'id', 'owner_id', 'name', 'brand', 'product_number', 'size', 'size_details',
            'model_worn_size', 'measurements', 'color', 'category', 'wear_scene',
            'purchase_date', 'purchase_price', 'currency', 'purchase_location', 'source_url',
            'image_url', 'image_url_2', 'image_url_3', 'notes', 'is_from_shop',
            'is_discarded', 'discarded_at', 'is_sold', 'sold_date', 'sold_price',
            'sold_currency', 'sold_location', 'is_active', 'created_at', 'updated_at',
        ]
        # Lifecycle flags change only through the sell/discard/restore actions
        read_only_fields = [
            'owner_id', 'is_discarded', 'discarded_at', 'is_sold', 'sold_date', 'sold_price',
            'sold_currency', 'sold_location',
        ]

    def validate_purchase_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Purchase price cannot be negative")
        return value


class SellSerializer(serializers.Serializer):
    sold_date = serializers.DateField()
    sold_price = serializers.IntegerField(min_value=0)
    sold_currency = serializers.CharField(max_length=3, default='JPY')
    sold_location = serializers.CharField(max_length=200, allow_blank=True, allow_null=True, required=False)


class WornItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = WardrobeItem
        fields = ['id', 'name', 'brand', 'category', 'color', 'image_url']


class StylingPhotoSerializer(serializers.ModelSerializer):
    worn_items = WornItemSerializer(many=True, read_only=True)
    worn_item_ids = serializers.ListField(
        child=serializers.IntegerField(), write_only=True, required=False, default=list
    )

    class Meta:
        model = StylingPhoto
        fields = ['id', 'image_url', 'title', 'notes', 'worn_items', 'worn_item_ids', 'created_at']

    def validate_worn_item_ids(self, value):
        owner = self.context['request'].user
        ids = list(dict.fromkeys(value))
        owned = set(
            WardrobeItem.objects.filter(owner=owner, pk__in=ids).values_list('id', flat=True)
        )
        missing = [item_id for item_id in ids if item_id not in owned]
        if missing:
            raise serializers.ValidationError(f"Unknown wardrobe items: {missing}")
        return ids

    def create(self, validated_data):
        worn_item_ids = validated_data.pop('worn_item_ids', [])
        photo = StylingPhoto.objects.create(owner=self.context['request'].user, **validated_data)
        if worn_item_ids:
            photo.worn_items.set(worn_item_ids)
        return photo


class FootMeasurementSerializer(serializers.ModelSerializer):
    class Meta:
        model = FootMeasurement
        fields = [
            'id', 'foot_type', 'length_mm', 'width_mm', 'arch_height_mm', 'instep_height_mm',
            'scan_image_url', 'measurement_date', 'is_active', 'created_at',
        ]
        read_only_fields = ['measurement_date']

    def validate_length_mm(self, value):
        if value <= 0:
            raise serializers.ValidationError("Length must be positive")
        return value

    def validate_width_mm(self, value):
        if value <= 0:
            raise serializers.ValidationError("Width must be positive")
        return value


class BrandSizeMappingSerializer(serializers.ModelSerializer):
    class Meta:
        model = BrandSizeMapping
        fields = [
            'id', 'brand_name', 'size', 'size_system', 'numeric_size', 'fit_rating',
            'comfort_rating', 'notes', 'created_at',
        ]


class SizeRecommendationSerializer(serializers.Serializer):
    product_name = serializers.CharField(max_length=300)


class ImagePayloadSerializer(serializers.Serializer):
    imageBase64 = serializers.CharField()


class ScrapeUrlSerializer(serializers.Serializer):
    url = serializers.URLField(max_length=2000)


class ChatTurnSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=['user', 'assistant'])
    content = serializers.CharField(allow_blank=True)


class ChatSerializer(serializers.Serializer):
    message = serializers.CharField()
    history = ChatTurnSerializer(many=True, required=False, default=list)
