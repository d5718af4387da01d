# schemas/__init__.py
from .invoice import (
     InvoiceCreate,
     InvoiceUpdate,
     InvoiceStatusUpdate,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceMutationResponse,
     LineItemMutationResponse,
     PaymentMutationResponse,
     ContactInvoiceSummary,
)
from .line_item import LineItemCreate, LineItemUpdate, LineItemResponse
from .payment import PaymentCreate, PaymentResponse
from .activity import ActivityResponse, ActivityListResponse

__all__ = [
     "InvoiceCreate",
     "InvoiceUpdate",
     "InvoiceStatusUpdate",
     "InvoiceResponse",
     "InvoiceListResponse",
     "InvoiceMutationResponse",
     "LineItemMutationResponse",
     "PaymentMutationResponse",
     "ContactInvoiceSummary",
     "LineItemCreate",
     "LineItemUpdate",
     "LineItemResponse",
     "PaymentCreate",
     "PaymentResponse",
     "ActivityResponse",
     "ActivityListResponse",
]
