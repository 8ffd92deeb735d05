"""Utility functions for audit logging and partial updates"""
import logging

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None):
    """
    Create an audit log entry

    Args:
        request: Django/DRF request (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, order_status, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., product name)
    """
    if not action or not model_name or object_id is None:
        logger.warning(
            "Audit log creation skipped: missing required fields "
            "(action=%s, model_name=%s, object_id=%s)", action, model_name, object_id
        )
        return None

    audit_user = user
    if audit_user is None and request is not None and hasattr(request, 'user'):
        audit_user = request.user

    try:
        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def pick_allowed_fields(data, allowed_fields):
    """Return only the allow-listed keys present in ``data``.

    Mirrors the "update only what was sent" contract of the admin and
    profile endpoints: keys outside the allow-list are silently ignored, and
    callers answer 400 when nothing is left to update.
    """
    return {field: data[field] for field in allowed_fields if field in data}


def move_in_order(queryset, obj, direction):
    """
    Swap ``obj``'s display_order with its neighbour in ``queryset`` order.

    Returns False when there is no neighbour in that direction. When the two
    rows share a display_order the whole list is renumbered 1..n first so the
    swap is visible. Callers wrap this in ``transaction.atomic()``.
    """
    if direction not in ('up', 'down'):
        raise ValueError(f"Unknown direction: {direction}")

    rows = list(queryset)
    index = next((i for i, row in enumerate(rows) if row.pk == obj.pk), None)
    if index is None:
        return False

    neighbour_index = index - 1 if direction == 'up' else index + 1
    if neighbour_index < 0 or neighbour_index >= len(rows):
        return False

    current, neighbour = rows[index], rows[neighbour_index]
    if current.display_order == neighbour.display_order:
        for position, row in enumerate(rows, start=1):
            if row.display_order != position:
                row.display_order = position
                row.save(update_fields=['display_order'])

    current.display_order, neighbour.display_order = neighbour.display_order, current.display_order
    current.save(update_fields=['display_order'])
    neighbour.save(update_fields=['display_order'])
    return True


def replace_images(image_model, owner_field, owner, urls):
    """
    Replace every image of ``owner`` with the given ordered URL list.

    Blank entries are skipped but keep their slot, so the n-th URL always gets
    display_order n. Returns the created images.
    """
    image_model.objects.filter(**{owner_field: owner}).delete()
    created = []
    for position, url in enumerate(urls, start=1):
        if not url or not str(url).strip():
            continue
        created.append(image_model.objects.create(
            **{owner_field: owner, 'url': str(url).strip(), 'display_order': position}
        ))
    return created
