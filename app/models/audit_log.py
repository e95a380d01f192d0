from datetime import datetime, timezone
from app.extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_log"

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.String(255), nullable=False, index=True)  # admin email
    action = db.Column(db.String(50), nullable=False)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    payload = db.Column(db.JSON)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    ACTIONS = {
        "CREATE_PRODUCT",
        "UPDATE_PRODUCT",
        "DELETE_PRODUCT",
        "UPDATE_STOCK",
        "CREATE_ATTRIBUTE",
        "UPDATE_ATTRIBUTE",
        "DELETE_ATTRIBUTE",
        "UPDATE_ORDER_STATUS",
        "TOGGLE_REVIEW",
        "DELETE_REVIEW",
        "CREATE_SLIDE",
        "UPDATE_SLIDE",
        "DELETE_SLIDE",
    }

    def __repr__(self):
        return f"<AuditLog {self.action} by {self.admin_id}>"
