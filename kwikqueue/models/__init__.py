"""Database models"""

from kwikqueue.models.company import Company
from kwikqueue.models.product import Product
from kwikqueue.models.order import Order
from kwikqueue.models.customer import Customer
from kwikqueue.models.sms_log import SmsLog
from kwikqueue.models.user import User, UserRole

__all__ = [
    "Company",
    "Product",
    "Order",
    "Customer",
    "SmsLog",
    "User",
    "UserRole",
]
