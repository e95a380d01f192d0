from app.extensions import db


class Variant(db.Model):
    __tablename__ = "variants"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    size = db.Column(db.String(50), nullable=False)  # "M"
    color = db.Column(db.String(50), nullable=False)  # "Navy"
    stock = db.Column(db.Integer, nullable=False, default=0)
    weight = db.Column(db.Float)
    price = db.Column(db.Float)  # per-variant override
    sku = db.Column(db.String(64), nullable=False, index=True)
    sort_order = db.Column(db.Integer, default=0)

    __table_args__ = (
        db.UniqueConstraint("product_id", "size", "color", name="uq_variant"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "size": self.size,
            "color": self.color,
            "stock": self.stock,
            "weight": self.weight,
            "price": self.price,
            "sku": self.sku,
        }

    def __repr__(self):
        return f"<Variant {self.sku}: {self.size}/{self.color} x{self.stock}>"
