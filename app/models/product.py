from datetime import datetime, timezone
from app.extensions import db


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, default="")
    short_description = db.Column(db.String(200), default="")
    category = db.Column(db.String(50), nullable=False, index=True)
    price = db.Column(db.Float, nullable=False)  # effective selling price
    original_price = db.Column(db.Float, nullable=False)
    sale_price = db.Column(db.Float)
    on_sale = db.Column(db.Boolean, nullable=False, default=False)
    badge = db.Column(db.String(30), default="")
    tags = db.Column(db.JSON, default=list)  # ["summer", "cotton"]
    specifications = db.Column(db.JSON, default=dict)  # material, care, fit
    status = db.Column(
        db.String(20), nullable=False, default="active", index=True
    )
    is_visible = db.Column(db.Boolean, nullable=False, default=True)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    total_stock = db.Column(db.Integer, nullable=False, default=0)
    views = db.Column(db.Integer, nullable=False, default=0)
    sales = db.Column(db.Integer, nullable=False, default=0)
    rating = db.Column(db.Float, nullable=False, default=0)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    created_by = db.Column(db.String(255))
    updated_by = db.Column(db.String(255))
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    images = db.relationship(
        "ProductImage",
        backref="product",
        lazy="select",
        cascade="all, delete-orphan",
        order_by="ProductImage.sort_order",
    )
    variants = db.relationship(
        "Variant",
        backref="product",
        lazy="select",
        cascade="all, delete-orphan",
        order_by="Variant.sort_order",
    )

    VALID_STATUSES = {"active", "draft", "archived"}

    @property
    def primary_image(self):
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def is_out_of_stock(self):
        return (self.total_stock or 0) == 0

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "short_description": self.short_description,
            "category": self.category,
            "price": self.price,
            "original_price": self.original_price,
            "sale_price": self.sale_price,
            "on_sale": self.on_sale,
            "badge": self.badge,
            "tags": list(self.tags or []),
            "specifications": dict(self.specifications or {}),
            "status": self.status,
            "is_visible": self.is_visible,
            "is_featured": self.is_featured,
            "total_stock": self.total_stock,
            "views": self.views,
            "sales": self.sales,
            "rating": self.rating,
            "review_count": self.review_count,
            "variants": [v.to_dict() for v in self.variants],
            "images": [img.to_dict() for img in self.images],
            "created_by": self.created_by,
            "updated_by": self.updated_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Product {self.slug}: {self.name}>"
