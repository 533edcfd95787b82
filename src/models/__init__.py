"""Database model type definitions."""

from src.models.book import Book, BookCondition, BookStatus, ListingType
from src.models.notification import Notification, NotificationType
from src.models.order import ALLOWED_TRANSITIONS, Order, OrderStatus, can_transition
from src.models.profile import Profile
from src.models.shipping import ShippingDetails
from src.models.wishlist import WishlistEntry

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Book",
    "BookCondition",
    "BookStatus",
    "ListingType",
    "Notification",
    "NotificationType",
    "Order",
    "OrderStatus",
    "Profile",
    "ShippingDetails",
    "WishlistEntry",
    "can_transition",
]
