"""
Pre-signed upload URLs for product, styling and wardrobe images.

Clients upload image bytes straight to S3 with the returned URL and then store
the public URL on the owning record. Nothing here touches the file contents.
"""
import logging
import secrets
import string
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = 'uploads'
RANDOM_ID_LENGTH = 11
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


class UploadUrlError(Exception):
    """Raised when a pre-signed URL cannot be generated"""


def build_object_key(filename, folder=None, now_ms=None):
    """Build ``<folder>/<epoch ms>-<random>.<ext>`` for an uploaded file.

    The original file name is discarded apart from its extension so user
    supplied names never end up in public URLs.
    """
    folder = (folder or DEFAULT_FOLDER).strip('/') or DEFAULT_FOLDER
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    random_id = ''.join(secrets.choice(_RANDOM_ALPHABET) for _ in range(RANDOM_ID_LENGTH))
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'bin'
    return f"{folder}/{now_ms}-{random_id}.{ext}"


def public_url_for(key):
    base_url = settings.S3_PUBLIC_BASE_URL
    if base_url:
        return f"{base_url.rstrip('/')}/{key}"
    return f"https://{settings.S3_BUCKET}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"


def get_s3_client():
    return boto3.client('s3', region_name=settings.AWS_REGION)


def generate_upload_url(filename, content_type, folder=None):
    """Return ``{'uploadUrl', 'publicUrl', 'key'}`` for a direct PUT upload"""
    if not settings.S3_BUCKET:
        raise UploadUrlError('S3_BUCKET is not configured')

    key = build_object_key(filename, folder)
    try:
        upload_url = get_s3_client().generate_presigned_url(
            'put_object',
            Params={
                'Bucket': settings.S3_BUCKET,
                'Key': key,
                'ContentType': content_type,
            },
            ExpiresIn=settings.S3_UPLOAD_EXPIRES,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Error generating presigned URL for {key}: {str(e)}", exc_info=True)
        raise UploadUrlError(str(e)) from e

    logger.info(f"Issued upload URL for {key}")
    return {
        'uploadUrl': upload_url,
        'publicUrl': public_url_for(key),
        'key': key,
    }
