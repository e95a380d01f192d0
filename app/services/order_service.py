from datetime import datetime, timezone
from app.extensions import db
from app.models.audit_log import AuditLog
from app.models.order import Order
from app.services.errors import NotFound, ValidationError


def list_orders(status=None, page=1, per_page=50):
    query = Order.query
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Order.created_at.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )


def update_order_status(order_id, status, admin_id):
    """Move an order to ``status``."""
    if status not in Order.VALID_STATUSES:
        raise ValidationError({"status": "Invalid order status"})

    order = db.session.get(Order, order_id)
    if not order:
        raise NotFound("Order not found")

    old_status = order.status
    order.status = status
    order.updated_at = datetime.now(timezone.utc)
    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="UPDATE_ORDER_STATUS",
            payload={"order_id": order.id, "old": old_status, "new": status},
        )
    )
    db.session.commit()
    return order
