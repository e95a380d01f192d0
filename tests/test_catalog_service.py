"""Tests for the size/color/category vocabularies."""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

import app.extensions as ext
from app.models.attribute import Size
from app.services import catalog_service, product_service
from app.services.errors import CatalogError, NotFound, ValidationError

ADMIN = "admin@justees.test"


def test_seed_defaults_is_idempotent(app, db):
    added = catalog_service.seed_defaults()
    expected = sum(
        len(app.config[key])
        for key in ("DEFAULT_CATEGORIES", "DEFAULT_SIZES", "DEFAULT_COLORS")
    )
    assert added == expected
    assert catalog_service.seed_defaults() == 0
    assert catalog_service.load_names("size") == app.config["DEFAULT_SIZES"]


def test_load_names_uses_defaults_when_unreadable(app, db, monkeypatch):
    def broken(kind):
        raise OperationalError("SELECT", {}, Exception("no such table"))

    monkeypatch.setattr(catalog_service, "list_attributes", broken)
    assert catalog_service.load_names("color") == app.config["DEFAULT_COLORS"]


def test_create_attribute(db):
    row = catalog_service.create_attribute("category", {"name": " Caps ", "order": 3}, ADMIN)
    assert row.to_dict()["name"] == "Caps"
    assert row.slug == "caps"
    assert row.sort_order == 3

    with pytest.raises(CatalogError):
        catalog_service.create_attribute("category", {"name": "Caps"}, ADMIN)
    with pytest.raises(ValidationError):
        catalog_service.create_attribute("size", {"name": "  "}, ADMIN)
    with pytest.raises(NotFound):
        catalog_service.create_attribute("fabric", {"name": "Linen"}, ADMIN)


def test_list_attributes_ordered(db):
    catalog_service.create_attribute("size", {"name": "L", "order": 2}, ADMIN)
    catalog_service.create_attribute("size", {"name": "S", "order": 0}, ADMIN)
    catalog_service.create_attribute("size", {"name": "M", "order": 1}, ADMIN)
    assert [s.name for s in catalog_service.list_attributes("size")] == ["S", "M", "L"]


def test_update_attribute(db):
    row = catalog_service.create_attribute("color", {"name": "Navy"}, ADMIN)
    catalog_service.create_attribute("color", {"name": "Red"}, ADMIN)

    updated = catalog_service.update_attribute("color", row.id, {"name": "Midnight"}, ADMIN)
    assert updated.slug == "midnight"

    with pytest.raises(CatalogError):
        catalog_service.update_attribute("color", row.id, {"name": "Red"}, ADMIN)
    with pytest.raises(NotFound):
        catalog_service.update_attribute("color", 999, {"name": "Teal"}, ADMIN)


def test_delete_size_in_use_is_blocked(db):
    size = catalog_service.create_attribute("size", {"name": "M"}, ADMIN)
    product = product_service.create_product(
        {
            "name": "Classic Tee",
            "description": "Soft cotton crew neck tee.",
            "category": "T-Shirts",
            "price": 20.0,
            "original_price": 20.0,
            "variants": [{"size": "M", "color": "Black", "stock": 3}],
        },
        ADMIN,
    )

    with pytest.raises(CatalogError) as exc:
        catalog_service.delete_attribute("size", size.id, ADMIN)
    assert exc.value.blocking_products == [{"id": product.id, "name": "Classic Tee"}]

    product.status = "archived"
    db.session.commit()
    size_id = size.id
    catalog_service.delete_attribute("size", size_id, ADMIN)
    assert db.session.get(Size, size_id) is None


def test_subscribers_are_notified_until_unsubscribed(db):
    seen = []
    unsubscribe = catalog_service.subscribe(seen.append)

    catalog_service.create_attribute("size", {"name": "XL"}, ADMIN)
    unsubscribe()
    unsubscribe()
    catalog_service.create_attribute("size", {"name": "XXL"}, ADMIN)

    assert seen == ["size"]


def test_failing_subscriber_does_not_stop_others(db):
    seen = []

    def broken(kind):
        raise RuntimeError("boom")

    catalog_service.subscribe(broken)
    catalog_service.subscribe(seen.append)
    catalog_service.notify_changed("color")
    assert seen == ["color"]


def test_changes_only_reach_local_subscribers(db, monkeypatch):
    fake_redis = MagicMock()
    monkeypatch.setattr(ext, "redis_client", fake_redis)
    seen = []
    catalog_service.subscribe(seen.append)

    catalog_service.create_attribute("category", {"name": "Jackets"}, ADMIN)

    assert seen == ["category"]
    fake_redis.publish.assert_not_called()
