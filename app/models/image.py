from datetime import datetime, timezone
from app.extensions import db


class ProductImage(db.Model):
    __tablename__ = "product_images"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    color = db.Column(db.String(50), nullable=False, default="default")
    storage_key = db.Column(db.String(512), nullable=False)
    url = db.Column(db.String(1024), nullable=False)
    file_name = db.Column(db.String(255))
    alt = db.Column(db.String(255), default="")
    size = db.Column(db.Integer)  # stored bytes
    original_size = db.Column(db.Integer)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    sort_order = db.Column(db.Integer, default=0)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "url": self.url,
            "color": self.color,
            "alt": self.alt,
            "is_primary": self.is_primary,
            "path": self.storage_key,
        }

    def __repr__(self):
        primary = " primary" if self.is_primary else ""
        return f"<ProductImage {self.color}{primary} {self.storage_key}>"
