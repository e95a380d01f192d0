"""Form and payload validation shared by the editor and the services.

Validators return ``(valid, errors)`` tuples and never raise, so callers can
merge the results of several checks before deciding what to do.
"""
import hashlib
import re

MIN_PRODUCT_NAME_LENGTH = 3
MAX_PRODUCT_NAME_LENGTH = 100
MIN_DESCRIPTION_LENGTH = 10
MAX_SHORT_DESCRIPTION_LENGTH = 200
MIN_PRICE = 0
MAX_PRICE = 1_000_000
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5 MiB
MAX_IMAGES_PER_PRODUCT = 10
MAX_FILENAME_LENGTH = 100
MAX_MATERIAL_LENGTH = 50
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
ALLOWED_VIDEO_TYPES = ("video/mp4", "video/webm", "video/quicktime")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")


def parse_float(value):
    """Return ``value`` as a float, or None when it is blank or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_stock(value):
    """Coerce user input to a non-negative stock count; anything else is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        return max(int(value), 0)
    match = re.match(r"\s*(-?\d+)", str(value or ""))
    if not match:
        return 0
    return max(int(match.group(1)), 0)


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def validate_product_form(form, categories):
    """Validate the product-level fields of the editor form."""
    errors = {}

    name = (form.get("name") or "").strip()
    if not name:
        errors["name"] = "Product name is required"
    elif len(name) < MIN_PRODUCT_NAME_LENGTH:
        errors["name"] = (
            f"Product name must be at least {MIN_PRODUCT_NAME_LENGTH} characters"
        )
    elif len(name) > MAX_PRODUCT_NAME_LENGTH:
        errors["name"] = (
            f"Product name must be less than {MAX_PRODUCT_NAME_LENGTH} characters"
        )

    raw_price = form.get("original_price")
    price = parse_float(raw_price)
    if _is_blank(raw_price):
        errors["original_price"] = "Price is required"
    elif price is None or price <= MIN_PRICE:
        errors["original_price"] = "Price must be a valid number greater than 0"
    elif price > MAX_PRICE:
        errors["original_price"] = f"Price cannot exceed {MAX_PRICE:,}"

    category = form.get("category")
    if not category:
        errors["category"] = "Category is required"
    elif category not in categories:
        errors["category"] = "Invalid category selected"

    description = (form.get("description") or "").strip()
    if not description:
        errors["description"] = "Description is required"
    elif len(description) < MIN_DESCRIPTION_LENGTH:
        errors["description"] = (
            f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters"
        )

    short = form.get("short_description") or ""
    if len(short) > MAX_SHORT_DESCRIPTION_LENGTH:
        errors["short_description"] = (
            f"Short description must be less than "
            f"{MAX_SHORT_DESCRIPTION_LENGTH} characters"
        )

    return not errors, errors


def validate_variant(variant, index=0):
    """Validate a single ``{size, color, stock, weight, price}`` record."""
    errors = {}
    prefix = f"Variant {index + 1}"

    if not variant.get("size"):
        errors["size"] = "Size is required"
    if not variant.get("color"):
        errors["color"] = "Color is required"

    stock = variant.get("stock")
    if stock is None:
        errors["stock"] = "Stock is required"
    else:
        try:
            if int(stock) < 0:
                errors["stock"] = "Stock cannot be negative"
        except (TypeError, ValueError):
            errors["stock"] = "Stock must be a non-negative number"

    for field, label in (("weight", "Weight"), ("price", "Variant price")):
        raw = variant.get(field)
        if not _is_blank(raw):
            value = parse_float(raw)
            if value is None or value <= 0:
                errors[field] = f"{label} must be a positive number"

    material = variant.get("material") or ""
    if len(material) > MAX_MATERIAL_LENGTH:
        errors["material"] = (
            f"Material description must be less than {MAX_MATERIAL_LENGTH} characters"
        )

    return not errors, {
        f"variant_{index}_{field}": f"{prefix}: {message}"
        for field, message in errors.items()
    }


def validate_variants(variants):
    """Validate every variant and reject duplicate size/color pairs.

    An empty list is valid: a product may be saved before any stock exists.
    """
    all_errors = {}
    if not variants:
        return True, all_errors

    for index, variant in enumerate(variants):
        _, errors = validate_variant(variant, index)
        all_errors.update(errors)

    seen = set()
    for index, variant in enumerate(variants):
        key = (variant.get("size"), variant.get("color"))
        if key in seen:
            all_errors[f"duplicate_{index}"] = (
                f"Variant {index + 1}: Duplicate size-color combination"
            )
        seen.add(key)

    return not all_errors, all_errors


def check_image_file(file, max_size=MAX_IMAGE_SIZE):
    """Return the rejection reason for ``file``, or None when acceptable.

    This is the cheap predicate applied while editing: any ``image/*`` type
    up to ``max_size`` bytes.
    """
    if not (file.content_type or "").startswith("image/"):
        return f"{file.filename} is not a valid image file"
    if file.size > max_size:
        max_mb = max_size // (1024 * 1024)
        return f"{file.filename} is too large. Maximum size is {max_mb}MB"
    return None


def validate_images(files, max_size=MAX_IMAGE_SIZE, max_count=MAX_IMAGES_PER_PRODUCT):
    """Strict upload-time checks for a batch of files; returns a message list."""
    errors = []
    if not files:
        return True, errors

    for index, file in enumerate(files, start=1):
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            errors.append(
                f"Image {index}: Invalid file type. "
                f"Only JPEG, PNG, and WebP are allowed."
            )
        if file.size > max_size:
            max_mb = max_size // (1024 * 1024)
            errors.append(f"Image {index}: File too large. Maximum size is {max_mb}MB.")
        if len(file.filename or "") > MAX_FILENAME_LENGTH:
            errors.append(
                f"Image {index}: Filename too long. "
                f"Maximum {MAX_FILENAME_LENGTH} characters."
            )

    if len(files) > max_count:
        errors.append(f"Maximum {max_count} images allowed per product.")

    return not errors, errors


def validate_category(data):
    errors = {}

    name = (data.get("name") or "").strip()
    if not name:
        errors["name"] = "Category name is required"
    elif len(name) < 2:
        errors["name"] = "Category name must be at least 2 characters"
    elif len(name) > 50:
        errors["name"] = "Category name must be less than 50 characters"

    if data.get("description") and len(data["description"]) > 500:
        errors["description"] = "Category description must be less than 500 characters"

    order = data.get("order")
    if order is not None:
        try:
            if int(order) < 0:
                errors["order"] = "Order must be a non-negative number"
        except (TypeError, ValueError):
            errors["order"] = "Order must be a non-negative number"

    return not errors, errors


def validate_product_data(data):
    """Last-line check run by the product service before writing.

    Returns a flat list of messages; the editor has normally caught all of
    these already.
    """
    errors = []

    if len((data.get("name") or "").strip()) < MIN_PRODUCT_NAME_LENGTH:
        errors.append(
            "Product name is required and must be at least 3 characters long"
        )
    price = data.get("price")
    if not price or price <= 0:
        errors.append("Price is required and must be greater than 0")
    if not data.get("category"):
        errors.append("Category is required")
    if len((data.get("description") or "").strip()) < MIN_DESCRIPTION_LENGTH:
        errors.append(
            "Description is required and must be at least 10 characters long"
        )

    for index, variant in enumerate(data.get("variants") or []):
        if not variant.get("size"):
            errors.append(f"Variant {index + 1}: Size is required")
        if not variant.get("color"):
            errors.append(f"Variant {index + 1}: Color is required")
        if (variant.get("stock") or 0) < 0:
            errors.append(f"Variant {index + 1}: Stock cannot be negative")

    return not errors, errors


def generate_slug(name):
    """URL-friendly slug: lowercase ascii words joined by hyphens."""
    if not isinstance(name, str):
        return ""
    slug = name.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def generate_sku(product_name, size, color):
    """Build ``NAM-SIZE-CO-XXXX`` for a variant.

    The suffix is derived from the full name/size/color so two products that
    share a three-letter prefix still get distinct SKUs, and regenerating a
    SKU for the same variant yields the same value.
    """
    name_code = (product_name or "").strip()[:3].upper()
    size_code = (size or "").upper()
    color_code = (color or "")[:2].upper()
    digest = hashlib.sha1(
        f"{product_name}|{size}|{color}".lower().encode("utf-8")
    ).hexdigest()
    return f"{name_code}-{size_code}-{color_code}-{digest[:4].upper()}"


def is_valid_email(email):
    return bool(_EMAIL_RE.match(email or ""))


def is_valid_phone(phone):
    return bool(_PHONE_RE.match(phone or ""))
