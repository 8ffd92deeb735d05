"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import (
    invalidate_products_cache, invalidate_reports_cache, invalidate_styling_cache,
)

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

PRODUCT_MODELS = {'catalog.Category', 'catalog.Product', 'catalog.ProductImage', 'catalog.ProductVariant'}
STYLING_MODELS = {'styling.Styling', 'styling.StylingImage'}
REPORT_MODELS = {'shop.Order', 'shop.OrderItem'}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_listing_cache(sender, instance, **kwargs):
    """Invalidate product/styling listings and reports when their rows change"""
    if is_suspended():
        return

    label = getattr(getattr(sender, '_meta', None), 'label', None)
    if not label:
        return

    try:
        if label in PRODUCT_MODELS:
            invalidate_products_cache()
        elif label in STYLING_MODELS:
            invalidate_styling_cache()
        elif label in REPORT_MODELS:
            invalidate_reports_cache()
    except Exception as e:
        logger.warning(f"Error in invalidate_listing_cache signal for {label}: {e}")
