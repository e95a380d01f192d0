"""Tests for models."""
import pytest
from sqlalchemy.exc import IntegrityError

from app.models.attribute import Category
from app.models.image import ProductImage
from app.models.product import Product
from app.models.variant import Variant


def _product(**kwargs):
    data = dict(
        name="Classic Tee",
        slug="classic-tee",
        description="Soft cotton crew neck tee.",
        category="T-Shirts",
        price=20,
        original_price=20,
    )
    data.update(kwargs)
    return Product(**data)


def test_create_product(db):
    p = _product()
    db.session.add(p)
    db.session.commit()

    assert p.id is not None
    assert p.status == "active"
    assert p.is_visible is True
    assert p.is_out_of_stock


def test_variant_cell_is_unique_per_product(db):
    p = _product()
    p.variants = [
        Variant(size="M", color="Red", stock=1, sku="CLA-M-RE-0001"),
        Variant(size="M", color="Red", stock=2, sku="CLA-M-RE-0002"),
    ]
    db.session.add(p)
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_delete_cascades_to_variants_and_images(db):
    p = _product()
    p.variants = [Variant(size="M", color="Red", stock=1, sku="CLA-M-RE-0001")]
    p.images = [ProductImage(storage_key="products/1/a.jpg", url="https://cdn/a.jpg")]
    db.session.add(p)
    db.session.commit()

    db.session.delete(p)
    db.session.commit()
    assert Variant.query.count() == 0
    assert ProductImage.query.count() == 0


def test_to_dict(db):
    p = _product(tags=["summer"])
    p.images = [
        ProductImage(storage_key="k1", url="https://cdn/1.jpg", color="Red", sort_order=1),
        ProductImage(storage_key="k2", url="https://cdn/2.jpg", color="Red", sort_order=0,
                     is_primary=True),
    ]
    db.session.add(p)
    db.session.commit()

    data = p.to_dict()
    assert data["tags"] == ["summer"]
    assert [img["url"] for img in data["images"]] == ["https://cdn/2.jpg", "https://cdn/1.jpg"]
    assert p.primary_image.storage_key == "k2"
    assert data["images"][0]["path"] == "k2"


def test_image_color_defaults(db):
    p = _product()
    p.images = [ProductImage(storage_key="k", url="https://cdn/k.jpg")]
    db.session.add(p)
    db.session.commit()
    assert p.images[0].color == "default"
    assert p.images[0].is_primary is False


def test_category_to_dict(db):
    c = Category(name="Caps", slug="caps", sort_order=4, description="Headwear")
    db.session.add(c)
    db.session.commit()
    assert c.to_dict() == {
        "id": c.id,
        "name": "Caps",
        "slug": "caps",
        "order": 4,
        "description": "Headwear",
        "image_url": None,
    }
