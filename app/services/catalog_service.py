"""Admin-managed vocabularies (categories, sizes, colors).

Editors subscribe to catalog changes with :func:`subscribe` instead of
polling; every successful create/update/delete calls :func:`notify_changed`.
"""
import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from app.extensions import db
from app.models.attribute import Category, Size, Color
from app.models.audit_log import AuditLog
from app.models.product import Product
from app.models.variant import Variant
from app.services.errors import CatalogError, NotFound, ValidationError
from app.services.validation import generate_slug, validate_category

logger = logging.getLogger(__name__)

MODELS = {
    "category": Category,
    "size": Size,
    "color": Color,
}

_DEFAULTS_KEY = {
    "category": "DEFAULT_CATEGORIES",
    "size": "DEFAULT_SIZES",
    "color": "DEFAULT_COLORS",
}

_subscribers = []


def _model(kind):
    try:
        return MODELS[kind]
    except KeyError:
        raise NotFound(f"Unknown attribute type: {kind}")


# ---------------------------------------------------------------------------
# Change notifications
# ---------------------------------------------------------------------------

def subscribe(callback):
    """Register ``callback(kind)``; returns a function that unsubscribes."""
    _subscribers.append(callback)

    def unsubscribe():
        if callback in _subscribers:
            _subscribers.remove(callback)

    return unsubscribe


def notify_changed(kind):
    for callback in list(_subscribers):
        try:
            callback(kind)
        except Exception:
            logger.exception("Catalog subscriber failed for %s change", kind)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def list_attributes(kind):
    model = _model(kind)
    return model.query.order_by(model.sort_order, model.name).all()


def load_names(kind):
    """Names for ``kind``; configured defaults when the table is empty or unreadable."""
    try:
        names = [row.name for row in list_attributes(kind)]
    except SQLAlchemyError:
        logger.exception("Failed to load %s list, using defaults", kind)
        db.session.rollback()
        names = []
    return names or list(current_app.config[_DEFAULTS_KEY[kind]])


def load_attributes():
    """Load the three vocabularies the product editor needs."""
    return {
        "sizes": load_names("size"),
        "colors": load_names("color"),
        "categories": load_names("category"),
    }


def products_using(kind, name):
    """Active products whose variants reference size/color ``name``."""
    column = Variant.size if kind == "size" else Variant.color
    return (
        Product.query.filter_by(status="active")
        .filter(
            Product.id.in_(
                db.session.query(Variant.product_id).filter(column == name)
            )
        )
        .order_by(Product.name)
        .all()
    )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def _check(kind, data):
    if kind == "category":
        valid, errors = validate_category(data)
    else:
        name = (data.get("name") or "").strip()
        errors = {} if name else {"name": f"{kind.capitalize()} name is required"}
        valid = not errors
    if not valid:
        raise ValidationError(errors)


def create_attribute(kind, data, admin_id):
    model = _model(kind)
    _check(kind, data)

    name = data["name"].strip()
    if model.query.filter_by(name=name).first():
        raise CatalogError(f"{kind.capitalize()} '{name}' already exists")

    row = model(name=name, slug=generate_slug(name), sort_order=int(data.get("order") or 0))
    if kind == "category":
        row.description = data.get("description") or ""
        row.image_url = data.get("image_url")
    db.session.add(row)
    db.session.flush()

    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="CREATE_ATTRIBUTE",
            payload={"kind": kind, "name": name},
        )
    )
    db.session.commit()
    notify_changed(kind)
    return row


def update_attribute(kind, attribute_id, data, admin_id):
    model = _model(kind)
    row = db.session.get(model, attribute_id)
    if not row:
        raise NotFound(f"{kind.capitalize()} not found")

    merged = {"name": row.name, "order": row.sort_order, **data}
    _check(kind, merged)

    name = merged["name"].strip()
    clash = model.query.filter(model.name == name, model.id != row.id).first()
    if clash:
        raise CatalogError(f"{kind.capitalize()} '{name}' already exists")

    old_name = row.name
    row.name = name
    row.slug = generate_slug(name)
    row.sort_order = int(merged.get("order") or 0)
    if kind == "category":
        if "description" in data:
            row.description = data["description"] or ""
        if "image_url" in data:
            row.image_url = data["image_url"]

    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="UPDATE_ATTRIBUTE",
            payload={"kind": kind, "old_name": old_name, "name": name},
        )
    )
    db.session.commit()
    notify_changed(kind)
    return row


def delete_attribute(kind, attribute_id, admin_id):
    """Delete a vocabulary entry.

    Sizes and colors still referenced by an active product are refused;
    the blocking products are attached to the raised :class:`CatalogError`.
    """
    model = _model(kind)
    row = db.session.get(model, attribute_id)
    if not row:
        raise NotFound(f"{kind.capitalize()} not found")

    if kind in ("size", "color"):
        blocking = products_using(kind, row.name)
        if blocking:
            raise CatalogError(
                f"{kind.capitalize()} in use by products",
                blocking_products=[{"id": p.id, "name": p.name} for p in blocking],
            )

    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="DELETE_ATTRIBUTE",
            payload={"kind": kind, "name": row.name},
        )
    )
    db.session.delete(row)
    db.session.commit()
    notify_changed(kind)


def seed_defaults():
    """Insert the configured default vocabularies that are missing."""
    added = 0
    for kind, model in MODELS.items():
        for order, name in enumerate(current_app.config[_DEFAULTS_KEY[kind]]):
            if not model.query.filter_by(name=name).first():
                db.session.add(model(name=name, slug=generate_slug(name), sort_order=order))
                added += 1
    db.session.commit()
    return added
