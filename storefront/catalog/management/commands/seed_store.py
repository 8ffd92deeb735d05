"""
Management command to load the sample storefront catalog
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from storefront.catalog.models import Category, Product
from storefront.styling.models import Styling

CATEGORIES = [
    ('アウトドアウェア', 'outdoor-wear', 'アウトドアアクティビティに最適なウェア'),
    ('フットウェア', 'footwear', '快適で耐久性のあるシューズ'),
    ('アクセサリー', 'accessories', 'スタイリッシュなアクセサリー'),
]

PRODUCTS = [
    {
        'name': 'クラシック ペニーローファー',
        'slug': 'classic-penny-loafer',
        'description': '伝統的なデザインのペニーローファー。上質なカーフレザーを使用し、熟練の職人が一足一足丁寧に仕上げました。',
        'price': Decimal('38500'),
        'image_url': 'https://images.unsplash.com/photo-1614252235316-8c857d38b5f4?w=800',
        'kind': 'shoes',
        'stock': 10,
        'featured': True,
        'display_order': 1,
    },
    {
        'name': 'タッセル ローファー',
        'slug': 'tassel-loafer',
        'description': 'エレガントなタッセルが特徴のローファー。ビジネスからカジュアルまで幅広いシーンで活躍します。',
        'price': Decimal('42000'),
        'image_url': 'https://images.unsplash.com/photo-1533867617858-e7b97e060509?w=800',
        'kind': 'shoes',
        'stock': 8,
        'featured': True,
        'display_order': 2,
    },
    {
        'name': 'ビットローファー',
        'slug': 'bit-loafer',
        'description': '金属のビットが上品なアクセント。イタリアンスタイルの洗練されたデザインです。',
        'price': Decimal('45000'),
        'image_url': 'https://images.unsplash.com/photo-1582897085656-c636d006a246?w=800',
        'kind': 'shoes',
        'stock': 5,
        'featured': True,
        'display_order': 3,
    },
    {
        'name': 'シューケアセット',
        'slug': 'shoe-care-set',
        'description': '革靴のお手入れに必要なアイテムをセットにしました。クリーム、ブラシ、クロス入り。',
        'price': Decimal('5500'),
        'image_url': 'https://images.unsplash.com/photo-1449505278894-297fdb3edbc1?w=800',
        'kind': 'accessory',
        'stock': 20,
        'featured': False,
        'display_order': 4,
    },
]

STYLINGS = [
    {
        'title': 'ビジネスカジュアル',
        'description': 'クラシックペニーローファーを使ったビジネスカジュアルコーディネート。ネイビーのジャケットと相性抜群です。',
        'image_url': 'https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=800',
        'color': 'ネイビー×ブラウン',
        'size': 'M',
        'height': '175cm',
        'slug': 'business-casual',
        'display_order': 1,
    },
    {
        'title': 'カジュアルスタイル',
        'description': 'タッセルローファーで作る大人のカジュアルスタイル。デニムとの相性も抜群。',
        'image_url': 'https://images.unsplash.com/photo-1488161628813-04466f872be2?w=800',
        'color': 'インディゴ×タン',
        'size': 'L',
        'height': '180cm',
        'slug': 'casual-style',
        'display_order': 2,
    },
    {
        'title': 'フォーマルスタイル',
        'description': 'ビットローファーで作るフォーマルスタイル。特別な日のコーディネートに。',
        'image_url': 'https://images.unsplash.com/photo-1519085360753-af0119f7cbe7?w=800',
        'color': 'チャコール×ブラック',
        'size': 'M',
        'height': '172cm',
        'slug': 'formal-style',
        'display_order': 3,
    },
]


class Command(BaseCommand):
    help = "Loads sample categories, products and styling entries"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing catalog and styling rows before seeding',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write(self.style.WARNING("Clearing catalog and styling data..."))
            Product.objects.all().delete()
            Category.objects.all().delete()
            Styling.objects.all().delete()

        created_count = 0
        skipped_count = 0

        # Existing slugs are left untouched
        for name, slug, description in CATEGORIES:
            _, created = Category.objects.get_or_create(slug=slug, defaults={'name': name, 'description': description})
            created_count += int(created)
            skipped_count += int(not created)

        for data in PRODUCTS:
            fields = dict(data)
            _, created = Product.objects.get_or_create(slug=fields.pop('slug'), defaults=fields)
            created_count += int(created)
            skipped_count += int(not created)

        for data in STYLINGS:
            fields = dict(data)
            _, created = Styling.objects.get_or_create(slug=fields.pop('slug'), defaults=fields)
            created_count += int(created)
            skipped_count += int(not created)

        self.stdout.write(self.style.SUCCESS(f"Created: {created_count}, skipped (already present): {skipped_count}"))
