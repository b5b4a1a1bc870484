"""Database models for the NoteBay marketplace API."""
from app.models.user import User
from app.models.product import Product
from app.models.purchase import Purchase
from app.models.earning import Earning

__all__ = [
    "User",
    "Product",
    "Purchase",
    "Earning",
]
