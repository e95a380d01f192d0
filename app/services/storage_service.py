import logging
import secrets
import time
from urllib.parse import unquote, urlsplit

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from app.services import image_service
from app.services.errors import StorageError
from app.services.validation import ALLOWED_VIDEO_TYPES

logger = logging.getLogger(__name__)


def _get_client():
    return boto3.client(
        "s3",
        endpoint_url=current_app.config["S3_ENDPOINT_URL"] or None,
        aws_access_key_id=current_app.config["S3_ACCESS_KEY"],
        aws_secret_access_key=current_app.config["S3_SECRET_KEY"],
        region_name=current_app.config["S3_REGION"],
        config=BotoConfig(signature_version="s3v4"),
    )


def generate_file_name(original_name, product_id=None):
    """``<product_id>_<millis>_<random>.<ext>`` for a stored upload."""
    millis = int(time.time() * 1000)
    random = secrets.token_hex(3)
    extension = original_name.rsplit(".", 1)[-1].lower() if "." in original_name else "jpg"
    prefix = f"{product_id}_" if product_id else ""
    return f"{prefix}{millis}_{random}.{extension}"


def product_prefix(product_id):
    return f"products/{product_id}/" if product_id else "products/temp/"


def get_public_url(storage_key):
    """Return the public CDN URL for a storage key."""
    base = current_app.config["S3_PUBLIC_URL"].rstrip("/")
    return f"{base}/{storage_key}"


def key_from_url(url):
    """Recover the storage key from a public URL built by ``get_public_url``."""
    base = current_app.config["S3_PUBLIC_URL"].rstrip("/")
    if base and url.startswith(base + "/"):
        return unquote(url[len(base) + 1:])
    return unquote(urlsplit(url).path.lstrip("/"))


def upload(storage_key, data, content_type="image/jpeg", private=False):
    """Upload bytes to S3."""
    client = _get_client()
    bucket = current_app.config["S3_BUCKET_NAME"]
    acl = "private" if private else "public-read"

    client.put_object(
        Bucket=bucket,
        Key=storage_key,
        Body=data,
        ContentType=content_type,
        ACL=acl,
    )


def upload_product_image(image_file, product_id=None):
    """Validate, shrink and store one product image.

    Returns a dict with ``url``, ``path``, ``file_name``, ``size``,
    ``original_size`` and ``alt``.

    Raises:
        StorageError with a ``code`` of ``invalid-image`` or ``upload-failed``
    """
    try:
        image_service.validate_image(image_file.data, image_file.content_type)
        data = image_service.compress_image(
            image_file.data,
            image_file.content_type,
            max_dimension=current_app.config["IMAGE_MAX_DIMENSION"],
        )
    except ValueError as e:
        raise StorageError(f"{image_file.filename}: {e}", code="invalid-image")

    file_name = generate_file_name(image_file.filename, product_id)
    storage_key = product_prefix(product_id) + file_name

    try:
        upload(storage_key, data, content_type=image_file.content_type)
    except (BotoCoreError, ClientError) as e:
        logger.exception("Upload failed for %s", storage_key)
        code = None
        if isinstance(e, ClientError):
            code = e.response.get("Error", {}).get("Code")
        raise StorageError(
            f"{image_file.filename}: Failed to upload image", code=code or "upload-failed"
        )

    stem = image_file.filename.rsplit(".", 1)[0]
    return {
        "url": get_public_url(storage_key),
        "path": storage_key,
        "file_name": file_name,
        "size": len(data),
        "original_size": image_file.size,
        "alt": stem.replace("_", " ").replace("-", " "),
    }


def upload_product_images(image_files, product_id=None):
    """Upload a batch; one failure never stops the remaining files.

    Returns ``(uploaded, errors)`` where ``uploaded`` holds ``(index, data)``
    pairs and ``errors`` holds ``{"message", "code", "index"}`` dicts.
    """
    uploaded = []
    errors = []
    for index, image_file in enumerate(image_files):
        try:
            uploaded.append((index, upload_product_image(image_file, product_id)))
        except StorageError as e:
            errors.append({"message": e.message, "code": e.code, "index": index})
    if errors:
        logger.warning(
            "%d of %d uploads failed for product %s",
            len(errors), len(image_files), product_id,
        )
    return uploaded, errors


def delete(storage_key):
    """Delete an object from S3."""
    client = _get_client()
    bucket = current_app.config["S3_BUCKET_NAME"]
    client.delete_object(Bucket=bucket, Key=storage_key)


def delete_many(storage_keys):
    """Delete multiple objects from S3."""
    if not storage_keys:
        return
    client = _get_client()
    bucket = current_app.config["S3_BUCKET_NAME"]
    objects = [{"Key": k} for k in storage_keys]
    client.delete_objects(
        Bucket=bucket,
        Delete={"Objects": objects},
    )


def delete_prefix(prefix):
    """Delete every object under ``prefix``; returns the number removed."""
    client = _get_client()
    bucket = current_app.config["S3_BUCKET_NAME"]
    paginator = client.get_paginator("list_objects_v2")
    deleted = 0
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        keys = [obj["Key"] for obj in page.get("Contents", [])]
        if keys:
            delete_many(keys)
            deleted += len(keys)
    return deleted


def upload_slide_media(media_file):
    """Store one slide image (validated and resized) or video (stored as is).

    Returns a dict with ``url``, ``path``, ``type`` and ``size``.

    Raises:
        StorageError with a ``code`` of ``invalid-media`` or ``upload-failed``
    """
    config = current_app.config
    content_type = media_file.content_type
    try:
        if content_type in ALLOWED_VIDEO_TYPES:
            if media_file.size > config["MAX_SLIDE_VIDEO_SIZE"]:
                max_mb = config["MAX_SLIDE_VIDEO_SIZE"] // (1024 * 1024)
                raise ValueError(f"Video size too large. Maximum is {max_mb}MB.")
            media_type = "video"
            data = media_file.data
        else:
            image_service.validate_image(
                media_file.data, content_type, max_size=config["MAX_SLIDE_IMAGE_SIZE"]
            )
            media_type = "image"
            data = image_service.compress_image(
                media_file.data, content_type, max_dimension=config["SLIDE_MAX_DIMENSION"]
            )
    except ValueError as e:
        raise StorageError(f"{media_file.filename}: {e}", code="invalid-media")

    storage_key = "slides/" + generate_file_name(media_file.filename)
    try:
        upload(storage_key, data, content_type=content_type)
    except (BotoCoreError, ClientError) as e:
        logger.exception("Upload failed for %s", storage_key)
        code = None
        if isinstance(e, ClientError):
            code = e.response.get("Error", {}).get("Code")
        raise StorageError(
            f"{media_file.filename}: Failed to upload media", code=code or "upload-failed"
        )

    return {
        "url": get_public_url(storage_key),
        "path": storage_key,
        "type": media_type,
        "size": len(data),
    }
