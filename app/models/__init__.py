from app.models.product import Product
from app.models.variant import Variant
from app.models.image import ProductImage
from app.models.attribute import Category, Size, Color
from app.models.order import Order
from app.models.review import Review
from app.models.audit_log import AuditLog
from app.models.slide import Slide

__all__ = [
    "Product",
    "Variant",
    "ProductImage",
    "Category",
    "Size",
    "Color",
    "Order",
    "Review",
    "AuditLog",
    "Slide",
]
