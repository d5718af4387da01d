# models/__init__.py
from .base import Base
from .invoice import Invoice, InvoiceStatus
from .line_item import InvoiceLineItem
from .payment import Payment, PaymentMethod
from .invoice_activity import InvoiceActivity, InvoiceActivityType, ImmutableActivityError
from .invoice_counter import InvoiceCounter

__all__ = [
     "Base",
     "Invoice",
     "InvoiceStatus",
     "InvoiceLineItem",
     "Payment",
     "PaymentMethod",
     "InvoiceActivity",
     "InvoiceActivityType",
     "ImmutableActivityError",
     "InvoiceCounter",
]
