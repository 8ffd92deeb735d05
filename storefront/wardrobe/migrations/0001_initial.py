import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='WardrobeItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=300)),
                ('brand', models.CharField(blank=True, max_length=200, null=True)),
                ('product_number', models.CharField(blank=True, max_length=100, null=True)),
                ('size', models.CharField(blank=True, max_length=50, null=True)),
                ('size_details', models.JSONField(blank=True, null=True)),
                ('model_worn_size', models.CharField(blank=True, max_length=300, null=True)),
                ('measurements', models.TextField(blank=True, null=True)),
                ('color', models.CharField(blank=True, max_length=100, null=True)),
                ('category', models.CharField(blank=True, choices=[('トップス', 'トップス'), ('アウター／ジャケット', 'アウター／ジャケット'), ('パンツ', 'パンツ'), ('その他（スーツ／ワンピース等）', 'その他（スーツ／ワンピース等）'), ('バッグ', 'バッグ'), ('シューズ', 'シューズ'), ('アクセサリー／小物', 'アクセサリー／小物')], max_length=50, null=True)),
                ('wear_scene', models.CharField(blank=True, choices=[('casual', 'Casual'), ('formal', 'Formal'), ('both', 'Both')], max_length=10, null=True)),
                ('purchase_date', models.DateField(blank=True, null=True)),
                ('purchase_price', models.IntegerField(blank=True, null=True)),
                ('currency', models.CharField(default='JPY', max_length=3)),
                ('purchase_location', models.CharField(blank=True, max_length=200, null=True)),
                ('source_url', models.URLField(blank=True, max_length=1000, null=True)),
                ('image_url', models.CharField(blank=True, max_length=1000, null=True)),
                ('image_url_2', models.CharField(blank=True, max_length=1000, null=True)),
                ('image_url_3', models.CharField(blank=True, max_length=1000, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('is_from_shop', models.BooleanField(default=False)),
                ('is_discarded', models.BooleanField(default=False)),
                ('discarded_at', models.DateTimeField(blank=True, null=True)),
                ('is_sold', models.BooleanField(default=False)),
                ('sold_date', models.DateField(blank=True, null=True)),
                ('sold_price', models.IntegerField(blank=True, null=True)),
                ('sold_currency', models.CharField(blank=True, max_length=3, null=True)),
                ('sold_location', models.CharField(blank=True, max_length=200, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='wardrobe_items', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'wardrobe_items',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['owner', 'is_discarded', 'is_sold'], name='wardrobe_it_owner_i_5e2a7c_idx')],
            },
        ),
        migrations.CreateModel(
            name='StylingPhoto',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('image_url', models.CharField(max_length=1000)),
                ('title', models.CharField(blank=True, max_length=200, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='styling_photos', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'wardrobe_styling_photos',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='StylingPhotoItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('styling_photo', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to='wardrobe.stylingphoto')),
                ('wardrobe_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to='wardrobe.wardrobeitem')),
            ],
            options={
                'db_table': 'wardrobe_styling_items',
                'constraints': [models.UniqueConstraint(fields=('styling_photo', 'wardrobe_item'), name='unique_styling_photo_item')],
            },
        ),
        migrations.AddField(
            model_name='stylingphoto',
            name='worn_items',
            field=models.ManyToManyField(blank=True, related_name='styling_photos', through='wardrobe.StylingPhotoItem', to='wardrobe.wardrobeitem'),
        ),
        migrations.CreateModel(
            name='FootMeasurement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('foot_type', models.CharField(choices=[('left', 'Left'), ('right', 'Right')], max_length=5)),
                ('length_mm', models.DecimalField(decimal_places=1, max_digits=5)),
                ('width_mm', models.DecimalField(decimal_places=1, max_digits=5)),
                ('arch_height_mm', models.DecimalField(blank=True, decimal_places=1, max_digits=5, null=True)),
                ('instep_height_mm', models.DecimalField(blank=True, decimal_places=1, max_digits=5, null=True)),
                ('scan_image_url', models.CharField(blank=True, max_length=1000, null=True)),
                ('measurement_date', models.DateTimeField(auto_now_add=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='foot_measurements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'foot_measurements',
                'ordering': ['-measurement_date'],
            },
        ),
        migrations.CreateModel(
            name='BrandSizeMapping',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('brand_name', models.CharField(max_length=200)),
                ('size', models.CharField(max_length=50)),
                ('size_system', models.CharField(choices=[('JP', 'JP'), ('US', 'US'), ('UK', 'UK'), ('EU', 'EU')], max_length=2)),
                ('numeric_size', models.DecimalField(blank=True, decimal_places=1, max_digits=4, null=True)),
                ('fit_rating', models.PositiveSmallIntegerField(default=3, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ('comfort_rating', models.PositiveSmallIntegerField(default=3, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='brand_size_mappings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'brand_size_mappings',
                'ordering': ['brand_name', '-created_at'],
            },
        ),
    ]
