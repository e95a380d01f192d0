"""Homepage hero slides.

A slide shows one image or video. Media is either uploaded through
:mod:`storage_service` (the slide then owns the stored object) or given as an
external ``media_url``. Replaced and deleted objects are removed in the
background once the change is committed.
"""
import logging
from datetime import datetime, timezone

from app.extensions import db
from app.models.audit_log import AuditLog
from app.models.slide import Slide
from app.services import storage_service
from app.services.errors import NotFound, SaveError, StorageError, ValidationError
from app.services.product_service import enqueue_storage_cleanup

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 120
MAX_SUBTITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000


def _check(data, has_media):
    errors = {}

    for field, limit in (
        ("title", MAX_TITLE_LENGTH),
        ("subtitle", MAX_SUBTITLE_LENGTH),
        ("description", MAX_DESCRIPTION_LENGTH),
    ):
        value = data.get(field)
        if value is None:
            continue
        if not isinstance(value, str):
            errors[field] = f"{field.capitalize()} must be text"
        elif len(value.strip()) > limit:
            errors[field] = f"{field.capitalize()} must be less than {limit} characters"

    order = data.get("order")
    if order is not None:
        if isinstance(order, bool) or not isinstance(order, (int, str)):
            errors["order"] = "Order must be a non-negative number"
        else:
            try:
                if int(order) < 0:
                    errors["order"] = "Order must be a non-negative number"
            except ValueError:
                errors["order"] = "Order must be a non-negative number"

    if "is_visible" in data and not isinstance(data["is_visible"], bool):
        errors["is_visible"] = "is_visible must be true or false"

    media_url = data.get("media_url")
    if media_url is not None:
        if not isinstance(media_url, str) or not media_url.startswith(("http://", "https://")):
            errors["media_url"] = "Media URL must be an http(s) link"
    if data.get("type") is not None and data["type"] not in Slide.MEDIA_TYPES:
        errors["type"] = "Type must be image or video"

    if not has_media:
        errors["media"] = "Please provide media (image or video)"

    if errors:
        raise ValidationError(errors)


def _store_media(media_file):
    try:
        return storage_service.upload_slide_media(media_file)
    except StorageError as e:
        if e.code == "invalid-media":
            raise ValidationError({"media": e.message})
        raise SaveError(
            "Media upload failed",
            upload_errors=[{"message": e.message, "code": e.code}],
        )


def _apply(slide, data):
    for field in ("title", "subtitle", "description"):
        if data.get(field) is not None:
            setattr(slide, field, data[field].strip())
    if data.get("order") is not None:
        slide.sort_order = int(data["order"])
    if "is_visible" in data:
        slide.is_visible = data["is_visible"]


def _set_media(slide, data, media_file):
    """Point the slide at new media; returns the storage key it no longer uses."""
    old_key = slide.storage_key
    if media_file is not None:
        stored = _store_media(media_file)
        slide.url = stored["url"]
        slide.storage_key = stored["path"]
        slide.media_type = stored["type"]
    elif data.get("media_url"):
        slide.url = data["media_url"]
        slide.storage_key = None
        slide.media_type = data.get("type") or (
            "video" if slide.url.lower().endswith((".mp4", ".webm", ".mov")) else "image"
        )
    elif data.get("type") is not None:
        slide.media_type = data["type"]
        return None
    else:
        return None
    return old_key if old_key != slide.storage_key else None


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def list_slides(is_visible=None, limit=100):
    """Slides by ``order`` ascending, newest first within the same order."""
    query = Slide.query
    if is_visible is not None:
        query = query.filter_by(is_visible=is_visible)
    return (
        query.order_by(Slide.sort_order.asc(), Slide.created_at.desc(), Slide.id.desc())
        .limit(limit)
        .all()
    )


def get_slide(slide_id):
    slide = db.session.get(Slide, slide_id)
    if not slide:
        raise NotFound("Slide not found")
    return slide


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def create_slide(data, media_file, admin_id):
    _check(data, has_media=media_file is not None or bool(data.get("media_url")))

    slide = Slide(created_by=admin_id, updated_by=admin_id, is_visible=True, sort_order=0)
    _apply(slide, data)
    _set_media(slide, data, media_file)
    db.session.add(slide)
    db.session.flush()

    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="CREATE_SLIDE",
            payload={"slide_id": slide.id, "type": slide.media_type},
        )
    )
    db.session.commit()
    logger.info("Created %s slide %d", slide.media_type, slide.id)
    return slide


def update_slide(slide_id, data, media_file, admin_id):
    slide = get_slide(slide_id)
    _check(data, has_media=True)

    _apply(slide, data)
    replaced_key = _set_media(slide, data, media_file)
    slide.updated_by = admin_id
    slide.updated_at = datetime.now(timezone.utc)

    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="UPDATE_SLIDE",
            payload={"slide_id": slide.id, "media_replaced": replaced_key is not None},
        )
    )
    db.session.commit()
    if replaced_key:
        enqueue_storage_cleanup([replaced_key])
    return slide


def reorder_slides(slide_ids, admin_id):
    """Give the listed slides orders ``0..n-1`` in the given sequence."""
    if not isinstance(slide_ids, list) or not all(
        isinstance(i, int) and not isinstance(i, bool) for i in slide_ids
    ):
        raise ValidationError({"ids": "Expected a list of slide ids"})
    if len(set(slide_ids)) != len(slide_ids):
        raise ValidationError({"ids": "Slide ids must be unique"})

    slides = {s.id: s for s in Slide.query.filter(Slide.id.in_(slide_ids)).all()}
    missing = [i for i in slide_ids if i not in slides]
    if missing:
        raise NotFound(f"Slide not found: {', '.join(str(i) for i in missing)}")

    for position, slide_id in enumerate(slide_ids):
        slides[slide_id].sort_order = position
        slides[slide_id].updated_by = admin_id

    db.session.add(
        AuditLog(admin_id=admin_id, action="UPDATE_SLIDE", payload={"order": slide_ids})
    )
    db.session.commit()
    return list_slides()


def delete_slide(slide_id, admin_id):
    slide = get_slide(slide_id)
    storage_key = slide.storage_key

    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="DELETE_SLIDE",
            payload={"slide_id": slide.id, "url": slide.url},
        )
    )
    db.session.delete(slide)
    db.session.commit()
    if storage_key:
        enqueue_storage_cleanup([storage_key])
    return True
