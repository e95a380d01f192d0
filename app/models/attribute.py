"""Admin-managed vocabularies: categories, sizes and colors."""
from datetime import datetime, timezone
from app.extensions import db


class _AttributeMixin:
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    slug = db.Column(db.String(60), nullable=False, index=True)
    sort_order = db.Column(db.Integer, default=0)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "order": self.sort_order,
        }


class Category(_AttributeMixin, db.Model):
    __tablename__ = "categories"

    description = db.Column(db.Text, default="")
    image_url = db.Column(db.String(1024))

    def to_dict(self):
        data = super().to_dict()
        data["description"] = self.description
        data["image_url"] = self.image_url
        return data

    def __repr__(self):
        return f"<Category {self.name}>"


class Size(_AttributeMixin, db.Model):
    __tablename__ = "sizes"

    def __repr__(self):
        return f"<Size {self.name}>"


class Color(_AttributeMixin, db.Model):
    __tablename__ = "colors"

    def __repr__(self):
        return f"<Color {self.name}>"
