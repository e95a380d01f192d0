"""Product edit session: form fields + variant matrix + submit.

A session moves through ``empty → hydrating (edit only) → editing →
validating → valid | invalid``; any edit after validation returns it to
``editing``. Closing the session drops everything, and nothing is persisted
until :meth:`ProductEditor.submit` succeeds.
"""
import logging
from collections.abc import Mapping

from app.models.product import Product
from app.services import catalog_service, product_service
from app.services.errors import NotFound, PreconditionError, SaveError, ValidationError
from app.services.validation import (
    MAX_IMAGE_SIZE,
    parse_float,
    validate_product_form,
)
from app.services.variant_matrix import VariantMatrix

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}

SPECIFICATION_KEYS = ("material", "care_instructions", "fit")


def _to_bool(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ValueError("must be true or false")


def _to_str(value):
    if value is None:
        return ""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValueError("must be text")


def _to_price(value):
    # kept raw: prices are validated and coerced when the session is finalized
    if value is None:
        return ""
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    raise ValueError("must be a number")


def _to_tags(value):
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        raise ValueError("must be a list of tags")
    tags = []
    for tag in value:
        tag = _to_str(tag).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _to_specifications(value):
    if not isinstance(value, dict):
        raise ValueError("must be an object")
    unknown = set(value) - set(SPECIFICATION_KEYS)
    if unknown:
        raise ValueError(f"unknown keys: {', '.join(sorted(unknown))}")
    return {key: _to_str(val) for key, val in value.items()}


class ProductPatch:
    """A validated partial update of the editor's product fields.

    Only the names in ``FIELDS`` are accepted; anything else is reported
    instead of being merged silently.
    """

    FIELDS = {
        "name": _to_str,
        "description": _to_str,
        "short_description": _to_str,
        "category": _to_str,
        "original_price": _to_price,
        "sale_price": _to_price,
        "on_sale": _to_bool,
        "badge": _to_str,
        "tags": _to_tags,
        "specifications": _to_specifications,
        "status": _to_str,
        "is_visible": _to_bool,
        "is_featured": _to_bool,
    }

    def __init__(self, **changes):
        errors = {}
        self.changes = {}
        for field, value in changes.items():
            coerce = self.FIELDS.get(field)
            if coerce is None:
                errors[field] = "Unknown field"
                continue
            try:
                self.changes[field] = coerce(value)
            except ValueError as e:
                errors[field] = f"{field.replace('_', ' ').capitalize()} {e}"

        status = self.changes.get("status")
        if status is not None and status not in Product.VALID_STATUSES:
            errors["status"] = "Invalid status"
        if errors:
            raise ValidationError(errors)

    @classmethod
    def from_dict(cls, data):
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValidationError({"fields": "Expected an object of product fields"})
        return cls(**data)

    def __iter__(self):
        return iter(self.changes.items())

    def __bool__(self):
        return bool(self.changes)


def default_fields(categories=()):
    return {
        "name": "",
        "description": "",
        "short_description": "",
        "category": categories[0] if categories else "",
        "original_price": "",
        "sale_price": "",
        "on_sale": False,
        "badge": "",
        "tags": [],
        "specifications": {"material": "", "care_instructions": "", "fit": "Regular"},
        "status": "active",
        "is_visible": True,
        "is_featured": False,
    }


class ProductEditor:
    def __init__(self, product=None, max_image_size=MAX_IMAGE_SIZE):
        self.product_id = product.id if product is not None else None
        self._product = product
        self.matrix = VariantMatrix(max_image_size=max_image_size)
        self.attributes = {"sizes": [], "colors": [], "categories": []}
        self.fields = default_fields()
        self.errors = {}
        self.last_error = None
        self.state = "empty"
        self._unsubscribe = None

    @property
    def is_edit(self):
        return self.product_id is not None

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def open(self):
        """Load the catalog, subscribe to its changes and hydrate (edit mode)."""
        self.reload_attributes()
        self._unsubscribe = catalog_service.subscribe(self._on_catalog_changed)
        self.fields = default_fields(self.attributes["categories"])
        if self._product is not None:
            self.state = "hydrating"
            self._hydrate(self._product)
        self.state = "editing"
        return self

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.matrix.reset()
        self.fields = default_fields()
        self.errors = {}
        self.last_error = None
        self.state = "empty"

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def reload_attributes(self):
        self.attributes = catalog_service.load_attributes()

    def _on_catalog_changed(self, kind):
        logger.debug("Catalog %s changed, reloading editor vocabularies", kind)
        self.reload_attributes()

    def _hydrate(self, product):
        data = product.to_dict()
        fields = default_fields(self.attributes["categories"])
        for field in fields:
            if field in data and data[field] is not None:
                fields[field] = data[field]
        fields["original_price"] = _format_price(product.original_price)
        fields["sale_price"] = _format_price(product.sale_price)
        fields["specifications"] = {
            **default_fields()["specifications"],
            **(product.specifications or {}),
        }
        self.fields = fields
        self.matrix.hydrate(data["variants"], data["images"])

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _touch(self):
        self.state = "editing"

    def apply(self, patch):
        """Merge a :class:`ProductPatch` (or a plain dict) into the fields."""
        if not isinstance(patch, ProductPatch):
            patch = ProductPatch.from_dict(patch)
        for field, value in patch:
            if field == "specifications":
                value = {**self.fields["specifications"], **value}
            self.fields[field] = value
            self.errors.pop(field, None)
        self._touch()

    def add_tag(self, tag):
        tag = (tag or "").strip()
        if tag and tag not in self.fields["tags"]:
            self.fields["tags"] = self.fields["tags"] + [tag]
        self._touch()

    def remove_tag(self, tag):
        self.fields["tags"] = [t for t in self.fields["tags"] if t != tag]
        self._touch()

    def toggle_size(self, size):
        self._touch()
        return self.matrix.toggle_size(size)

    def toggle_color(self, color):
        self._touch()
        return self.matrix.toggle_color(color)

    def set_stock(self, size, color, raw_value):
        self._touch()
        self.matrix.set_stock(size, color, raw_value)

    def bulk_set_stock(self, value):
        self._touch()
        self.matrix.bulk_set_stock(value)

    def add_images(self, color, files):
        self._touch()
        rejected = self.matrix.add_images(color, files)
        for filename, reason in rejected:
            logger.info("Rejected image %s for %s: %s", filename, color, reason)
        return rejected

    # ------------------------------------------------------------------
    # Finalize / submit
    # ------------------------------------------------------------------

    def _prices(self):
        original = parse_float(self.fields["original_price"])
        sale = None
        price = original
        if self.fields["on_sale"] and str(self.fields["sale_price"]).strip():
            sale = parse_float(self.fields["sale_price"])
            if sale is not None:
                price = sale
                if original is not None and sale >= original:
                    logger.warning(
                        "Sale price %.2f is not below original price %.2f for %r",
                        sale, original, self.fields["name"],
                    )
        return price, original, sale

    def finalize(self, user_id):
        """Validate everything and build the payload for the product service.

        Raises:
            PreconditionError when there is no authenticated user
            ValidationError with every field/variant/image problem at once
        """
        if not user_id:
            raise PreconditionError("Authentication required. Please login again.")

        self.state = "validating"
        _, errors = validate_product_form(self.fields, self.attributes["categories"])
        errors.update(self.matrix.validate())
        self.errors = errors
        if errors:
            self.state = "invalid"
            raise ValidationError(errors)

        price, original, sale = self._prices()
        files, file_colors = self.matrix.pending_uploads()
        payload = {
            "name": self.fields["name"].strip(),
            "description": self.fields["description"].strip(),
            "short_description": self.fields["short_description"],
            "category": self.fields["category"],
            "price": price,
            "original_price": original,
            "sale_price": sale,
            "on_sale": bool(self.fields["on_sale"]),
            "badge": self.fields["badge"],
            "tags": list(self.fields["tags"]),
            "specifications": dict(self.fields["specifications"]),
            "status": self.fields["status"],
            "is_visible": self.fields["is_visible"],
            "is_featured": self.fields["is_featured"],
            "variants": self.matrix.export_variants(self.fields["name"].strip()),
            "total_stock": self.matrix.total_stock,
            "files": files,
            "file_colors": file_colors,
            "images_to_remove": list(self.matrix.images_to_remove),
        }
        self.state = "valid"
        return payload

    def submit(self, user_id):
        """Finalize and persist.

        On failure the editing state is kept so the admin can fix and retry;
        ``last_error`` holds the exception. A successful create resets the
        session for the next product.
        """
        self.last_error = None
        try:
            payload = self.finalize(user_id)
            if self.is_edit:
                product = product_service.update_product(self.product_id, payload, user_id)
            else:
                product = product_service.create_product(payload, user_id)
        except (ValidationError, PreconditionError, SaveError, NotFound) as e:
            self.last_error = e
            if self.state == "valid":
                self.state = "editing"
            raise

        if self.is_edit:
            self._product = product
            self._hydrate(product)
        else:
            self.matrix.reset()
            self.fields = default_fields(self.attributes["categories"])
        self.state = "editing"
        return product


def _format_price(value):
    if value is None:
        return ""
    return f"{value:g}" if float(value).is_integer() else str(value)
