"""Models package - exports all SQLAlchemy models."""
# Catalog
from app.models.product import Product
from app.models.discount import Discount

# Parties
from app.models.representative import Representative
from app.models.client import Client

# Orders
from app.models.order import Order, OrderStatus
from app.models.order_item import OrderItem

__all__ = [
    'Product', 'Discount',
    'Representative', 'Client',
    'Order', 'OrderStatus', 'OrderItem',
]
