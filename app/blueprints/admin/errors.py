"""Map service exceptions to JSON error responses."""
import logging
from app.blueprints.admin import admin_bp
from app.services.errors import (
    CatalogError,
    NotFound,
    PreconditionError,
    SaveError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@admin_bp.errorhandler(ValidationError)
def handle_validation_error(e):
    return {"error": str(e), "errors": e.errors}, 400


@admin_bp.errorhandler(PreconditionError)
def handle_precondition_error(e):
    return {"error": str(e)}, 412


@admin_bp.errorhandler(SaveError)
def handle_save_error(e):
    # upload_errors come from object storage, not from the submitted fields
    status = 502 if e.upload_errors else 400
    logger.warning("Save failed: %s", e.message)
    return e.to_dict(), status


@admin_bp.errorhandler(NotFound)
def handle_not_found(e):
    return {"error": str(e)}, 404


@admin_bp.errorhandler(CatalogError)
def handle_catalog_error(e):
    body = {"error": e.message}
    if e.blocking_products:
        body["blocking_products"] = e.blocking_products
    return body, 409
