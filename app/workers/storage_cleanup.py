"""RQ worker job: delete product images that are no longer referenced."""
import logging
from app import create_app
from flask import current_app, has_app_context
from app.services import storage_service

logger = logging.getLogger(__name__)

_worker_app = None


def _get_app():
    """Return an app instance for worker execution.

    Reuse the current app when already inside an app context (tests/CLI),
    otherwise lazily create the worker app once.
    """
    global _worker_app
    if has_app_context():
        return current_app._get_current_object()
    if _worker_app is None:
        _worker_app = create_app()
    return _worker_app


def delete_objects(storage_keys=None, prefix=None):
    """Delete ``storage_keys`` and/or everything under ``prefix``.

    Enqueued after a product update removed images or a product was deleted.
    Raises on storage errors so RQ retries the job.
    """
    app = _get_app()
    with app.app_context():
        deleted = 0
        if storage_keys:
            storage_service.delete_many(storage_keys)
            deleted += len(storage_keys)
        if prefix:
            deleted += storage_service.delete_prefix(prefix)
        logger.info("Storage cleanup removed %d objects (prefix=%s)", deleted, prefix)
        return deleted
