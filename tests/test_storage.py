"""Tests for image processing and object storage (S3 mocked)."""
import io
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from PIL import Image as PILImage

from app.services import image_service, storage_service
from app.services.errors import StorageError
from app.services.image_service import ImageFile


def _png(width=1600, height=1200):
    buffer = io.BytesIO()
    PILImage.new("RGB", (width, height), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_compress_image_fits_max_dimension():
    data = image_service.compress_image(_png(), "image/png", max_dimension=800)
    img = PILImage.open(io.BytesIO(data))
    assert img.size == (800, 600)
    assert img.format == "PNG"


def test_validate_image_rejects_fakes():
    image_service.validate_image(_png(10, 10), "image/png")
    with pytest.raises(ValueError):
        image_service.validate_image(b"not an image", "image/jpeg")
    with pytest.raises(ValueError):
        image_service.validate_image(_png(10, 10), "image/gif")


def test_upload_product_image(app):
    image = ImageFile("red_front-view.png", "image/png", _png())
    with patch.object(storage_service, "upload") as mock_upload:
        stored = storage_service.upload_product_image(image, product_id=7)

    key = mock_upload.call_args.args[0]
    assert key.startswith("products/7/7_")
    assert key.endswith(".png")
    assert stored["path"] == key
    assert stored["url"] == f"https://cdn.justees.test/{key}"
    assert stored["alt"] == "red front view"
    assert stored["original_size"] == image.size
    assert storage_service.key_from_url(stored["url"]) == key


def test_upload_product_images_keeps_going_after_failure(app):
    images = [
        ImageFile("a.png", "image/png", _png(10, 10)),
        ImageFile("b.png", "image/png", b"broken"),
        ImageFile("c.png", "image/png", _png(10, 10)),
    ]
    denied = ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "PutObject")
    with patch.object(storage_service, "upload", side_effect=[None, denied]):
        uploaded, errors = storage_service.upload_product_images(images, product_id=3)

    assert [index for index, _ in uploaded] == [0]
    assert [(e["index"], e["code"]) for e in errors] == [
        (1, "invalid-image"),
        (2, "AccessDenied"),
    ]


def test_upload_product_image_wraps_errors(app):
    with pytest.raises(StorageError) as exc:
        storage_service.upload_product_image(ImageFile("x.jpg", "image/jpeg", b"nope"))
    assert exc.value.code == "invalid-image"


def test_delete_prefix(app):
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = [
        {"Contents": [{"Key": "products/4/a.jpg"}, {"Key": "products/4/b.jpg"}]},
        {},
    ]
    with patch.object(storage_service, "_get_client", return_value=client):
        assert storage_service.delete_prefix("products/4/") == 2

    client.delete_objects.assert_called_once_with(
        Bucket="justees-images",
        Delete={"Objects": [{"Key": "products/4/a.jpg"}, {"Key": "products/4/b.jpg"}]},
    )


def test_product_prefix():
    assert storage_service.product_prefix(12) == "products/12/"
    assert storage_service.product_prefix(None) == "products/temp/"
