from .restaurant import Restaurant
from .catalog import Category, Product
from .orders import Order, OrderItem, DocumentSequence, ORDER_TYPES, ORDER_STATUSES, PAYMENT_STATUSES
from .inventory import InventoryTransaction, TRANSACTION_TYPES
from .auth import User, SessionToken, USER_ROLES
from .notifications import Notification

__all__ = [
    'Restaurant',
    'Category', 'Product',
    'Order', 'OrderItem', 'DocumentSequence',
    'InventoryTransaction',
    'User', 'SessionToken',
    'Notification',
    'ORDER_TYPES', 'ORDER_STATUSES', 'PAYMENT_STATUSES', 'TRANSACTION_TYPES', 'USER_ROLES',
]
