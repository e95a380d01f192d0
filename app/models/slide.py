"""Homepage hero slides (image or video)."""
from datetime import datetime, timezone
from app.extensions import db


class Slide(db.Model):
    __tablename__ = "slides"

    MEDIA_TYPES = ("image", "video")

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(120), default="")
    subtitle = db.Column(db.String(200), default="")
    description = db.Column(db.Text, default="")
    media_type = db.Column(db.String(10), nullable=False, default="image")
    url = db.Column(db.String(1024), nullable=False)
    storage_key = db.Column(db.String(512))  # None for externally hosted media
    sort_order = db.Column(db.Integer, nullable=False, default=0, index=True)
    is_visible = db.Column(db.Boolean, nullable=False, default=True, index=True)
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

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "description": self.description,
            "type": self.media_type,
            "url": self.url,
            "path": self.storage_key,
            "order": self.sort_order,
            "is_visible": self.is_visible,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Slide {self.sort_order} {self.media_type} {self.title!r}>"
