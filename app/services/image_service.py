import io
from PIL import Image as PILImage

from app.services.validation import ALLOWED_IMAGE_TYPES, MAX_IMAGE_SIZE


class ImageFile:
    """An image the admin picked but that has not been uploaded yet."""

    def __init__(self, filename, content_type, data):
        self.filename = filename or "image"
        self.content_type = (content_type or "").lower()
        self.data = data or b""

    @classmethod
    def from_file_storage(cls, file_storage):
        """Build from a werkzeug ``FileStorage`` (multipart upload field)."""
        return cls(file_storage.filename, file_storage.mimetype, file_storage.read())

    @property
    def size(self):
        return len(self.data)

    def __repr__(self):
        return f"<ImageFile {self.filename} {self.content_type} {self.size}B>"


_PIL_FORMATS = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}


def validate_image(image_bytes, content_type, max_size=MAX_IMAGE_SIZE):
    """Check an upload is a real image of an allowed type.

    Raises:
        ValueError on invalid input
    """
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValueError("Invalid file type. Only JPEG, PNG, and WebP are allowed.")
    if len(image_bytes) > max_size:
        raise ValueError(
            f"File size too large. Maximum size is {max_size // (1024 * 1024)}MB."
        )

    try:
        img = PILImage.open(io.BytesIO(image_bytes))
        img.verify()  # verify it's a real image
    except Exception:
        raise ValueError("Invalid image file")


def compress_image(image_bytes, content_type, max_dimension=800, quality=80):
    """Shrink an image to fit ``max_dimension`` square, keeping its format.

    Re-encoding also drops EXIF metadata.

    Returns:
        Re-encoded image bytes
    """
    fmt = _PIL_FORMATS.get(content_type, "JPEG")
    img = PILImage.open(io.BytesIO(image_bytes))
    if fmt == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    img.thumbnail((max_dimension, max_dimension), PILImage.LANCZOS)

    buffer = io.BytesIO()
    if fmt == "PNG":
        img.save(buffer, format=fmt, optimize=True)
    else:
        img.save(buffer, format=fmt, quality=quality)
    return buffer.getvalue()
