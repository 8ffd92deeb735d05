from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class WardrobeItem(models.Model):
    """A garment, bag or pair of shoes in a user's personal wardrobe"""
    CATEGORY_CHOICES = [
        ('トップス', 'トップス'),
        ('アウター／ジャケット', 'アウター／ジャケット'),
        ('パンツ', 'パンツ'),
        ('その他（スーツ／ワンピース等）', 'その他（スーツ／ワンピース等）'),
        ('バッグ', 'バッグ'),
        ('シューズ', 'シューズ'),
        ('アクセサリー／小物', 'アクセサリー／小物'),
    ]
    WEAR_SCENE_CHOICES = [
        ('casual', 'Casual'),
        ('formal', 'Formal'),
        ('both', 'Both'),
    ]

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='wardrobe_items')
    name = models.CharField(max_length=300)
    brand = models.CharField(max_length=200, blank=True, null=True)
    product_number = models.CharField(max_length=100, blank=True, null=True)
    size = models.CharField(max_length=50, blank=True, null=True)
    size_details = models.JSONField(blank=True, null=True)
    model_worn_size = models.CharField(max_length=300, blank=True, null=True)
    measurements = models.TextField(blank=True, null=True)
    color = models.CharField(max_length=100, blank=True, null=True)
    category = models.CharField(max_length=50, choices=CATEGORY_CHOICES, blank=True, null=True)
    wear_scene = models.CharField(max_length=10, choices=WEAR_SCENE_CHOICES, blank=True, null=True)

    purchase_date = models.DateField(blank=True, null=True)
    purchase_price = models.IntegerField(blank=True, null=True)
    currency = models.CharField(max_length=3, default='JPY')
    purchase_location = models.CharField(max_length=200, blank=True, null=True)
    source_url = models.URLField(max_length=1000, blank=True, null=True)
    image_url = models.CharField(max_length=1000, blank=True, null=True)
    image_url_2 = models.CharField(max_length=1000, blank=True, null=True)
    image_url_3 = models.CharField(max_length=1000, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    is_from_shop = models.BooleanField(default=False)

    is_discarded = models.BooleanField(default=False)
    discarded_at = models.DateTimeField(blank=True, null=True)
    is_sold = models.BooleanField(default=False)
    sold_date = models.DateField(blank=True, null=True)
    sold_price = models.IntegerField(blank=True, null=True)
    sold_currency = models.CharField(max_length=3, blank=True, null=True)
    sold_location = models.CharField(max_length=200, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.brand or 'no brand'})"

    @property
    def is_active(self):
        return not self.is_discarded and not self.is_sold

    class Meta:
        db_table = 'wardrobe_items'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['owner', 'is_discarded', 'is_sold'], name='wardrobe_it_owner_i_5e2a7c_idx'),
        ]


class StylingPhoto(models.Model):
    """Outfit photo tagged with the wardrobe items worn in it"""
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='styling_photos')
    image_url = models.CharField(max_length=1000)
    title = models.CharField(max_length=200, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    worn_items = models.ManyToManyField(WardrobeItem, through='StylingPhotoItem', related_name='styling_photos', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title or f"Styling photo #{self.id}"

    class Meta:
        db_table = 'wardrobe_styling_photos'
        ordering = ['-created_at']


class StylingPhotoItem(models.Model):
    styling_photo = models.ForeignKey(StylingPhoto, on_delete=models.CASCADE)
    wardrobe_item = models.ForeignKey(WardrobeItem, on_delete=models.CASCADE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'wardrobe_styling_items'
        constraints = [
            models.UniqueConstraint(fields=['styling_photo', 'wardrobe_item'], name='unique_styling_photo_item'),
        ]


class FootMeasurement(models.Model):
    FOOT_TYPE_CHOICES = [
        ('left', 'Left'),
        ('right', 'Right'),
    ]

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='foot_measurements')
    foot_type = models.CharField(max_length=5, choices=FOOT_TYPE_CHOICES)
    length_mm = models.DecimalField(max_digits=5, decimal_places=1)
    width_mm = models.DecimalField(max_digits=5, decimal_places=1)
    arch_height_mm = models.DecimalField(max_digits=5, decimal_places=1, blank=True, null=True)
    instep_height_mm = models.DecimalField(max_digits=5, decimal_places=1, blank=True, null=True)
    scan_image_url = models.CharField(max_length=1000, blank=True, null=True)
    measurement_date = models.DateTimeField(auto_now_add=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.owner} {self.foot_type} {self.length_mm}mm"

    class Meta:
        db_table = 'foot_measurements'
        ordering = ['-measurement_date']


class BrandSizeMapping(models.Model):
    """Size the user wears in a given brand, with fit and comfort ratings"""
    SIZE_SYSTEM_CHOICES = [
        ('JP', 'JP'),
        ('US', 'US'),
        ('UK', 'UK'),
        ('EU', 'EU'),
    ]

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='brand_size_mappings')
    brand_name = models.CharField(max_length=200)
    size = models.CharField(max_length=50)
    size_system = models.CharField(max_length=2, choices=SIZE_SYSTEM_CHOICES)
    numeric_size = models.DecimalField(max_digits=4, decimal_places=1, blank=True, null=True)
    fit_rating = models.PositiveSmallIntegerField(default=3, validators=[MinValueValidator(1), MaxValueValidator(5)])
    comfort_rating = models.PositiveSmallIntegerField(default=3, validators=[MinValueValidator(1), MaxValueValidator(5)])
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.brand_name} {self.size_system} {self.size}"

    class Meta:
        db_table = 'brand_size_mappings'
        ordering = ['brand_name', '-created_at']
