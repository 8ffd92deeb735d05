import django_filters
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Storefront product filter using django-filter"""

    # The shop calls the coarse product label "category"
    category = django_filters.CharFilter(field_name='kind', lookup_expr='exact')
    category_id = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    featured = django_filters.CharFilter(method='filter_featured', label='Featured')

    class Meta:
        model = Product
        fields = ['category', 'category_id', 'featured']

    def filter_featured(self, queryset, name, value):
        if value == 'true':
            return queryset.filter(featured=True)
        return queryset
