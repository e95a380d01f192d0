from app.extensions import db
from app.models.audit_log import AuditLog
from app.models.product import Product
from app.models.review import Review
from app.services.errors import NotFound


def list_reviews(product_id=None, is_visible=None, page=1, per_page=50):
    query = Review.query
    if product_id is not None:
        query = query.filter_by(product_id=product_id)
    if is_visible is not None:
        query = query.filter_by(is_visible=is_visible)
    return query.order_by(Review.created_at.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )


def refresh_product_rating(product_id):
    """Recompute ``rating`` / ``review_count`` from visible reviews."""
    product = db.session.get(Product, product_id)
    if not product:
        return None
    count, average = (
        db.session.query(db.func.count(Review.id), db.func.avg(Review.rating))
        .filter(Review.product_id == product_id, Review.is_visible.is_(True))
        .one()
    )
    product.review_count = count
    product.rating = round(float(average), 2) if average is not None else 0
    return product


def set_review_visibility(review_id, is_visible, admin_id):
    review = db.session.get(Review, review_id)
    if not review:
        raise NotFound("Review not found")

    review.is_visible = bool(is_visible)
    db.session.flush()
    refresh_product_rating(review.product_id)
    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="TOGGLE_REVIEW",
            product_id=review.product_id,
            payload={"review_id": review.id, "is_visible": review.is_visible},
        )
    )
    db.session.commit()
    return review


def delete_review(review_id, admin_id):
    review = db.session.get(Review, review_id)
    if not review:
        raise NotFound("Review not found")

    product_id = review.product_id
    db.session.delete(review)
    db.session.flush()
    refresh_product_rating(product_id)
    db.session.add(
        AuditLog(
            admin_id=admin_id,
            action="DELETE_REVIEW",
            product_id=product_id,
            payload={"review_id": review_id},
        )
    )
    db.session.commit()
