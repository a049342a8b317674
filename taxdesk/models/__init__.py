"""
TaxDesk - Database Models

Importing this package registers every table on Base.metadata.
"""

from taxdesk.models.base import BaseModel, ClientOwnedModel, TimestampMixin
from taxdesk.models.user import User
from taxdesk.models.client import Client, GSTStatus
from taxdesk.models.gst_return import GSTReturn, ReturnStatus, ReturnType
from taxdesk.models.notice import Notice, NoticeStatus
from taxdesk.models.invoice import Invoice, InvoiceStatus
from taxdesk.models.payment import GSTPayment, PaymentStatus, PaymentType
from taxdesk.models.registration import GSTRegistration, RegistrationStatus
from taxdesk.models.notification import Notification, NotificationType

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "ClientOwnedModel",
    "User",
    "Client",
    "GSTStatus",
    "GSTReturn",
    "ReturnStatus",
    "ReturnType",
    "Notice",
    "NoticeStatus",
    "Invoice",
    "InvoiceStatus",
    "GSTPayment",
    "PaymentStatus",
    "PaymentType",
    "GSTRegistration",
    "RegistrationStatus",
    "Notification",
    "NotificationType",
]
