import logging
from datetime import datetime, timezone

from flask import current_app
from rq import Retry

from app import extensions
from app.extensions import db
from app.models.audit_log import AuditLog
from app.models.image import ProductImage
from app.models.product import Product
from app.models.variant import Variant
from app.services import storage_service
from app.services.errors import NotFound, PreconditionError, SaveError, ValidationError
from app.services.validation import (
    generate_slug,
    generate_sku,
    parse_stock,
    validate_images,
    validate_product_data,
)
from app.services.variant_matrix import DEFAULT_IMAGE_COLOR

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    "name",
    "description",
    "short_description",
    "category",
    "price",
    "original_price",
    "sale_price",
    "on_sale",
    "badge",
    "tags",
    "specifications",
    "status",
    "is_visible",
    "is_featured",
)

ORDERABLE_FIELDS = {
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
    "name": Product.name,
    "price": Product.price,
    "total_stock": Product.total_stock,
    "sales": Product.sales,
}


def unique_slug(name, exclude_id=None):
    """Slug for ``name``, suffixed ``-2``, ``-3``... until no other product has it."""
    base = generate_slug(name) or "product"
    slug = base
    n = 1
    while True:
        query = Product.query.filter_by(slug=slug)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if not query.first():
            return slug
        n += 1
        slug = f"{base}-{n}"


def enqueue_storage_cleanup(storage_keys=None, prefix=None):
    """Delete stored objects in the background; failures are only logged."""
    if not storage_keys and not prefix:
        return
    try:
        extensions.task_queue.enqueue(
            "app.workers.storage_cleanup.delete_objects",
            storage_keys=list(storage_keys or []),
            prefix=prefix,
            retry=Retry(max=3, interval=[30, 120, 300]),
        )
    except Exception:
        logger.exception("Could not enqueue storage cleanup for %s", prefix or storage_keys)


def _sync_variants(product, variants, product_name):
    """Make the product's variant rows match ``variants``; returns total stock.

    Rows are matched on ``(size, color)`` and updated in place so their ids
    stay stable; unmatched rows are deleted and new cells inserted.
    """
    existing = {(v.size, v.color): v for v in product.variants}
    kept = set()
    total = 0
    for i, data in enumerate(variants):
        key = (data["size"], data["color"])
        stock = parse_stock(data.get("stock"))
        total += stock
        variant = existing.get(key)
        if variant is None:
            variant = Variant(size=data["size"], color=data["color"])
            product.variants.append(variant)
        variant.stock = stock
        variant.weight = data.get("weight")
        variant.price = data.get("price")
        variant.sku = (
            data.get("sku") or variant.sku
            or generate_sku(product_name, data["size"], data["color"])
        )
        variant.sort_order = i
        kept.add(key)

    for key, variant in existing.items():
        if key not in kept:
            product.variants.remove(variant)
    return total


def _upload_images(product, files, file_colors):
    """Upload ``files`` and attach them to ``product`` in order.

    On any failed file the already stored siblings are scheduled for deletion
    and :class:`SaveError` is raised; the caller rolls back.
    """
    if not files:
        return
    valid, file_errors = validate_images(
        files,
        max_size=current_app.config["MAX_IMAGE_SIZE"],
        max_count=current_app.config["MAX_IMAGES_PER_PRODUCT"] - len(product.images),
    )
    if not valid:
        raise SaveError("Validation failed", errors=file_errors)

    uploaded, errors = storage_service.upload_product_images(files, product.id)
    if errors:
        enqueue_storage_cleanup([data["path"] for _, data in uploaded])
        raise SaveError(
            "Image upload failed",
            upload_errors=[{"message": e["message"], "code": e["code"]} for e in errors],
        )

    had_images = bool(product.images)
    next_order = len(product.images)
    for position, (index, data) in enumerate(uploaded):
        color = file_colors[index] if index < len(file_colors) else None
        product.images.append(
            ProductImage(
                color=color or DEFAULT_IMAGE_COLOR,
                storage_key=data["path"],
                url=data["url"],
                file_name=data["file_name"],
                alt=data["alt"],
                size=data["size"],
                original_size=data["original_size"],
                is_primary=not had_images and position == 0,
                sort_order=next_order + position,
            )
        )


def _ensure_primary(product):
    """Exactly one image is primary; the first one when the flag was lost."""
    primaries = [img for img in product.images if img.is_primary]
    if not product.images or len(primaries) == 1:
        return
    for i, img in enumerate(product.images):
        img.is_primary = i == 0


def _apply_fields(product, payload):
    for field in PRODUCT_FIELDS:
        if field in payload:
            setattr(product, field, payload[field])


def create_product(payload, user_id):
    """Persist a finalized editor payload as a new product.

    ``payload`` carries the product fields, ``variants``, and the parallel
    ``files`` / ``file_colors`` lists of pending uploads.
    """
    if not user_id:
        raise PreconditionError("Authentication required. Please login again.")

    valid, errors = validate_product_data(payload)
    if not valid:
        raise SaveError("Validation failed", errors=errors)

    product = Product(
        slug=unique_slug(payload["name"]),
        status=payload.get("status") or "active",
        created_by=user_id,
        updated_by=user_id,
    )
    _apply_fields(product, payload)
    if product.original_price is None:
        product.original_price = product.price
    if product.is_visible is None:
        product.is_visible = True
    db.session.add(product)
    db.session.flush()  # get product.id for storage keys

    try:
        product.total_stock = _sync_variants(
            product, payload.get("variants") or [], product.name
        )
        _upload_images(product, payload.get("files") or [], payload.get("file_colors") or [])
    except SaveError:
        db.session.rollback()
        raise

    db.session.add(
        AuditLog(
            admin_id=user_id,
            action="CREATE_PRODUCT",
            product_id=product.id,
            payload={"slug": product.slug, "name": product.name},
        )
    )
    db.session.commit()
    logger.info("Created product %s (%d variants)", product.slug, len(product.variants))
    return product


def update_product(product_id, payload, user_id):
    """Apply a finalized editor payload to an existing product.

    ``images_to_remove`` lists stored image URLs to drop; their objects are
    deleted in the background once the update is committed.
    """
    if not user_id:
        raise PreconditionError("Authentication required. Please login again.")
    if product_id is None:
        raise PreconditionError("Missing product reference for update")

    product = db.session.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")

    current = {field: getattr(product, field) for field in PRODUCT_FIELDS}
    valid, errors = validate_product_data({**current, **payload})
    if not valid:
        raise SaveError("Validation failed", errors=errors)

    name = payload.get("name") or product.name
    if name != product.name:
        product.slug = unique_slug(name, exclude_id=product.id)
    _apply_fields(product, payload)
    product.updated_by = user_id
    product.updated_at = datetime.now(timezone.utc)

    removed_keys = []
    to_remove = set(payload.get("images_to_remove") or [])
    for image in list(product.images):
        if image.url in to_remove:
            removed_keys.append(image.storage_key)
            product.images.remove(image)

    try:
        if "variants" in payload:
            product.total_stock = _sync_variants(product, payload["variants"], name)
        _upload_images(product, payload.get("files") or [], payload.get("file_colors") or [])
    except SaveError:
        db.session.rollback()
        raise

    _ensure_primary(product)
    db.session.add(
        AuditLog(
            admin_id=user_id,
            action="UPDATE_PRODUCT",
            product_id=product.id,
            payload={"removed_images": len(removed_keys)},
        )
    )
    db.session.commit()
    enqueue_storage_cleanup(removed_keys)
    return product


def delete_product(product_id, admin_id):
    """Delete a product with its variants and images."""
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")

    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="DELETE_PRODUCT",
            product_id=None,
            payload={"product_id": product.id, "slug": product.slug},
        )
    )
    db.session.delete(product)  # cascades to images + variants
    db.session.commit()
    enqueue_storage_cleanup(prefix=storage_service.product_prefix(product_id))
    return True


def update_product_stock(product_id, variant_id, new_stock, admin_id):
    """Set one variant's stock and recompute the product total."""
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")

    variant = next((v for v in product.variants if v.id == variant_id), None)
    if not variant:
        raise NotFound("Variant not found")

    try:
        stock = int(new_stock)
    except (TypeError, ValueError):
        raise ValidationError({"stock": "Stock must be a non-negative number"})
    if stock < 0:
        raise ValidationError({"stock": "Stock cannot be negative"})

    old_stock = variant.stock
    variant.stock = stock
    product.total_stock = sum(v.stock for v in product.variants)
    product.updated_at = datetime.now(timezone.utc)
    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="UPDATE_STOCK",
            product_id=product.id,
            payload={"sku": variant.sku, "old": old_stock, "new": stock},
        )
    )
    db.session.commit()
    return product


def get_product(product_id):
    return db.session.get(Product, product_id)


def get_product_by_slug(slug):
    return Product.query.filter_by(slug=slug.lower()).first()


def list_products(
    category=None, status=None, is_visible=None, featured=None, search=None,
    order_by="created_at", direction="desc", page=1, per_page=20,
):
    """Admin product list with filters."""
    query = Product.query

    if status:
        query = query.filter_by(status=status)
    if is_visible is not None:
        query = query.filter_by(is_visible=is_visible)
    if category and category != "All":
        query = query.filter_by(category=category)
    if featured is not None:
        query = query.filter_by(is_featured=featured)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            db.or_(
                Product.name.ilike(term),
                Product.description.ilike(term),
                db.cast(Product.tags, db.String).ilike(term),
            )
        )

    column = ORDERABLE_FIELDS.get(order_by, Product.created_at)
    query = query.order_by(column.asc() if direction == "asc" else column.desc())

    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_product_analytics():
    """Store-wide totals for the dashboard and the ``stats`` command."""
    row = db.session.query(
        db.func.count(Product.id),
        db.func.coalesce(db.func.sum(Product.views), 0),
        db.func.coalesce(db.func.sum(Product.sales), 0),
        db.func.coalesce(db.func.sum(Product.total_stock), 0),
        db.func.coalesce(db.func.avg(Product.rating), 0),
    ).one()
    out_of_stock = Product.query.filter(Product.total_stock == 0).count()
    featured = Product.query.filter_by(is_featured=True).count()
    by_status = dict(
        db.session.query(Product.status, db.func.count(Product.id))
        .group_by(Product.status)
        .all()
    )
    return {
        "total_products": row[0],
        "total_views": int(row[1]),
        "total_sales": int(row[2]),
        "total_stock": int(row[3]),
        "average_rating": round(float(row[4]), 2),
        "out_of_stock": out_of_stock,
        "featured_products": featured,
        "by_status": by_status,
    }
