from app.commerce.cart.service import CartService
from app.commerce.orders.service import OrderService

__all__ = [
    "CartService",
    "OrderService",
]
