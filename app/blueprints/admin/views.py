"""Admin JSON API: products, catalog vocabularies, slides, orders, reviews."""
import json
import logging
from flask import current_app, g, request
from app.blueprints.admin import admin_bp
from app.blueprints.admin.auth import admin_required
from app.services import (
    catalog_service,
    order_service,
    product_service,
    review_service,
    slide_service,
)
from app.services.errors import NotFound, ValidationError
from app.services.image_service import ImageFile
from app.services.product_editor import ProductEditor

logger = logging.getLogger(__name__)


def _page(pagination, serialize=lambda item: item.to_dict()):
    return {
        "items": [serialize(item) for item in pagination.items],
        "page": pagination.page,
        "pages": pagination.pages,
        "total": pagination.total,
    }


def _bool_arg(name):
    value = request.args.get(name)
    if value is None:
        return None
    return value.lower() in ("1", "true", "yes")


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError({"body": "Expected a JSON object"})
    return data


def _request_data():
    """JSON instructions: the ``data`` form field of a multipart request, else the body."""
    if request.files or request.form:
        try:
            data = json.loads(request.form.get("data") or "{}")
        except ValueError:
            raise ValidationError({"data": "Invalid JSON"})
    else:
        data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError({"data": "Expected a JSON object"})
    return data


def _editor_request():
    """Read the editor instructions and uploaded files from the request.

    Files arrive under ``images[<color>]``; plain JSON requests carry none.
    """
    data = _request_data()
    files = {}
    for key in request.files:
        if key.startswith("images[") and key.endswith("]"):
            color = key[len("images["):-1]
            files[color] = [
                ImageFile.from_file_storage(f) for f in request.files.getlist(key)
            ]
    return data, files


def _list_of(data, key, item_types=str, label="strings"):
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, item_types) for v in value):
        raise ValidationError({key: f"Expected a list of {label}"})
    return value


def _wanted_selection(data, key, catalog, selected):
    """Requested sizes/colors; each must be in the catalog or already on the product."""
    wanted = _list_of(data, key)
    unknown = [v for v in wanted if v not in catalog and v not in selected]
    if unknown:
        raise ValidationError({key: f"Unknown {key}: {', '.join(unknown)}"})
    return wanted


def _sync_selection(selected, wanted, toggle):
    for value in list(selected):
        if value not in wanted:
            toggle(value)
    for value in wanted:
        if value not in selected:
            toggle(value)


def _apply_editor_request(editor, data, files):
    """Replay the request as editor interactions; returns rejected images."""
    fields = data.get("fields")
    if fields is not None and not isinstance(fields, dict):
        raise ValidationError({"fields": "Expected a JSON object"})
    stock_cells = _list_of(data, "stock", dict, "objects")
    tags = _list_of(data, "add_tags")
    removed_urls = _list_of(data, "remove_images")

    if fields:
        editor.apply(fields)
    for tag in tags:
        editor.add_tag(tag)

    matrix = editor.matrix
    if "sizes" in data:
        wanted = _wanted_selection(
            data, "sizes", editor.attributes["sizes"], matrix.selected_sizes
        )
        _sync_selection(matrix.selected_sizes, wanted, editor.toggle_size)
    if "colors" in data:
        wanted = _wanted_selection(
            data, "colors", editor.attributes["colors"], matrix.selected_colors
        )
        _sync_selection(matrix.selected_colors, wanted, editor.toggle_color)

    if data.get("bulk_stock") is not None:
        editor.bulk_set_stock(data["bulk_stock"])
    for cell in stock_cells:
        editor.set_stock(cell.get("size"), cell.get("color"), cell.get("stock"))
        if "weight" in cell:
            matrix.set_weight(cell.get("size"), cell.get("color"), cell["weight"])

    for url in removed_urls:
        for color, urls in list(editor.matrix.existing_images.items()):
            if url in urls:
                editor.matrix.remove_existing_image(color, url)

    rejected = []
    for color, color_files in files.items():
        for filename, reason in editor.add_images(color, color_files):
            rejected.append({"file": filename, "color": color, "reason": reason})
    return rejected


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

@admin_bp.route("/products", methods=["GET"])
@admin_required
def list_products():
    pagination = product_service.list_products(
        category=request.args.get("category"),
        status=request.args.get("status"),
        is_visible=_bool_arg("visible"),
        featured=_bool_arg("featured"),
        search=request.args.get("q"),
        order_by=request.args.get("order_by", "created_at"),
        direction=request.args.get("direction", "desc"),
        page=request.args.get("page", 1, type=int),
        per_page=min(request.args.get("per_page", 20, type=int), 100),
    )
    return _page(pagination)


@admin_bp.route("/products/<int:product_id>", methods=["GET"])
@admin_required
def get_product(product_id):
    product = product_service.get_product(product_id)
    if not product:
        raise NotFound("Product not found")
    return {"product": product.to_dict()}


@admin_bp.route("/products", methods=["POST"])
@admin_required
def create_product():
    data, files = _editor_request()
    with ProductEditor(max_image_size=_max_image_size()) as editor:
        rejected = _apply_editor_request(editor, data, files)
        product = editor.submit(g.admin_email)
        return {"product": product.to_dict(), "rejected_images": rejected}, 201


@admin_bp.route("/products/<int:product_id>", methods=["PUT"])
@admin_required
def update_product(product_id):
    product = product_service.get_product(product_id)
    if not product:
        raise NotFound("Product not found")

    data, files = _editor_request()
    with ProductEditor(product, max_image_size=_max_image_size()) as editor:
        rejected = _apply_editor_request(editor, data, files)
        product = editor.submit(g.admin_email)
        return {"product": product.to_dict(), "rejected_images": rejected}


@admin_bp.route("/products/<int:product_id>", methods=["DELETE"])
@admin_required
def delete_product(product_id):
    product_service.delete_product(product_id, g.admin_email)
    return {"message": "Product deleted successfully"}


@admin_bp.route("/products/<int:product_id>/variants/<int:variant_id>", methods=["PATCH"])
@admin_required
def update_stock(product_id, variant_id):
    data = _json_body()
    product = product_service.update_product_stock(
        product_id, variant_id, data.get("stock"), g.admin_email
    )
    return {"product": product.to_dict(), "message": "Stock updated successfully"}


@admin_bp.route("/analytics", methods=["GET"])
@admin_required
def analytics():
    return {"analytics": product_service.get_product_analytics()}


def _max_image_size():
    return current_app.config["MAX_IMAGE_SIZE"]


# ---------------------------------------------------------------------------
# Catalog vocabularies
# ---------------------------------------------------------------------------

@admin_bp.route("/catalog", methods=["GET"])
@admin_required
def catalog_names():
    return catalog_service.load_attributes()


@admin_bp.route("/catalog/<kind>", methods=["GET"])
@admin_required
def list_attributes(kind):
    return {"items": [row.to_dict() for row in catalog_service.list_attributes(kind)]}


@admin_bp.route("/catalog/<kind>", methods=["POST"])
@admin_required
def create_attribute(kind):
    row = catalog_service.create_attribute(kind, _json_body(), g.admin_email)
    return {"item": row.to_dict()}, 201


@admin_bp.route("/catalog/<kind>/<int:attribute_id>", methods=["PUT"])
@admin_required
def update_attribute(kind, attribute_id):
    row = catalog_service.update_attribute(kind, attribute_id, _json_body(), g.admin_email)
    return {"item": row.to_dict()}


@admin_bp.route("/catalog/<kind>/<int:attribute_id>", methods=["DELETE"])
@admin_required
def delete_attribute(kind, attribute_id):
    catalog_service.delete_attribute(kind, attribute_id, g.admin_email)
    return {"message": f"{kind.capitalize()} deleted"}


# ---------------------------------------------------------------------------
# Slides
# ---------------------------------------------------------------------------

def _slide_request():
    media = request.files.get("media")
    return _request_data(), ImageFile.from_file_storage(media) if media else None


@admin_bp.route("/slides", methods=["GET"])
@admin_required
def list_slides():
    slides = slide_service.list_slides(is_visible=_bool_arg("visible"))
    return {"items": [s.to_dict() for s in slides]}


@admin_bp.route("/slides/<int:slide_id>", methods=["GET"])
@admin_required
def get_slide(slide_id):
    return {"slide": slide_service.get_slide(slide_id).to_dict()}


@admin_bp.route("/slides", methods=["POST"])
@admin_required
def create_slide():
    data, media = _slide_request()
    slide = slide_service.create_slide(data, media, g.admin_email)
    return {"slide": slide.to_dict()}, 201


@admin_bp.route("/slides/<int:slide_id>", methods=["PUT"])
@admin_required
def update_slide(slide_id):
    data, media = _slide_request()
    slide = slide_service.update_slide(slide_id, data, media, g.admin_email)
    return {"slide": slide.to_dict()}


@admin_bp.route("/slides/order", methods=["PUT"])
@admin_required
def reorder_slides():
    slides = slide_service.reorder_slides(_json_body().get("ids"), g.admin_email)
    return {"items": [s.to_dict() for s in slides]}


@admin_bp.route("/slides/<int:slide_id>", methods=["DELETE"])
@admin_required
def delete_slide(slide_id):
    slide_service.delete_slide(slide_id, g.admin_email)
    return {"message": "Slide deleted"}


# ---------------------------------------------------------------------------
# Orders & reviews
# ---------------------------------------------------------------------------

@admin_bp.route("/orders", methods=["GET"])
@admin_required
def list_orders():
    pagination = order_service.list_orders(
        status=request.args.get("status"),
        page=request.args.get("page", 1, type=int),
    )
    return _page(pagination)


@admin_bp.route("/orders/<int:order_id>", methods=["PATCH"])
@admin_required
def update_order(order_id):
    data = _json_body()
    order = order_service.update_order_status(order_id, data.get("status"), g.admin_email)
    return {"order": order.to_dict()}


@admin_bp.route("/reviews", methods=["GET"])
@admin_required
def list_reviews():
    pagination = review_service.list_reviews(
        product_id=request.args.get("product_id", type=int),
        is_visible=_bool_arg("visible"),
        page=request.args.get("page", 1, type=int),
    )
    return _page(pagination)


@admin_bp.route("/reviews/<int:review_id>", methods=["PATCH"])
@admin_required
def update_review(review_id):
    data = _json_body()
    if "is_visible" not in data:
        raise ValidationError({"is_visible": "is_visible is required"})
    review = review_service.set_review_visibility(
        review_id, data["is_visible"], g.admin_email
    )
    return {"review": review.to_dict()}


@admin_bp.route("/reviews/<int:review_id>", methods=["DELETE"])
@admin_required
def delete_review(review_id):
    review_service.delete_review(review_id, g.admin_email)
    return {"message": "Review deleted"}
