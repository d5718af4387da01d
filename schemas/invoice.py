# schemas/invoice.py
"""
Pydantic schemas for Invoice API request/response validation.

Money fields are Decimal end to end and serialize as strings in JSON.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from models import InvoiceStatus
from .activity import ActivityResponse
from .line_item import LineItemCreate, LineItemResponse
from .payment import PaymentResponse


class InvoiceCreate(BaseModel):
     """Schema for creating a new draft invoice."""
     contact_id: int = Field(..., gt=0, description="Contact being billed")
     booking_id: Optional[int] = Field(None, gt=0, description="Originating booking, if any")
     issue_date: Optional[date] = Field(None, description="Defaults to today")
     due_date: date = Field(..., description="Payment due date")
     tax_rate: Decimal = Field(
          default=Decimal("0"),
          ge=0,
          le=1,
          max_digits=6,
          decimal_places=4,
          description="Tax as a fraction, 0.1 = 10%"
     )
     notes: Optional[str] = Field(None, max_length=2000)
     terms: Optional[str] = Field(None, max_length=2000)
     line_items: List[LineItemCreate] = Field(default_factory=list)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "contact_id": 1,
                    "due_date": "2026-11-18",
                    "tax_rate": "0.1",
                    "line_items": [
                         {"description": "Portrait session", "quantity": "2", "unit_price": "50.00"}
                    ]
               }
          }
     )


class InvoiceUpdate(BaseModel):
     """Schema for updating a draft invoice's header fields."""
     issue_date: Optional[date] = None
     due_date: Optional[date] = None
     tax_rate: Optional[Decimal] = Field(None, ge=0, le=1, max_digits=6, decimal_places=4)
     notes: Optional[str] = Field(None, max_length=2000)
     terms: Optional[str] = Field(None, max_length=2000)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "tax_rate": "0.2"
               }
          }
     )


class InvoiceStatusUpdate(BaseModel):
     """Schema for the operator status override."""
     status: InvoiceStatus


class InvoiceResponse(BaseModel):
     """Schema for invoice response."""
     id: int
     invoice_number: str
     contact_id: int
     booking_id: Optional[int] = None
     status: InvoiceStatus
     issue_date: date
     due_date: date
     subtotal: Decimal
     tax_rate: Decimal
     tax_amount: Decimal
     total: Decimal
     amount_paid: Decimal
     amount_due: Decimal
     notes: Optional[str] = None
     terms: Optional[str] = None
     sent_at: Optional[datetime] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     line_items: List[LineItemResponse] = Field(default_factory=list)
     payments: List[PaymentResponse] = Field(default_factory=list)
     activities: List[ActivityResponse] = Field(default_factory=list)

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 1,
                    "invoice_number": "INV-2026-0001",
                    "contact_id": 1,
                    "status": "PARTIALLY_PAID",
                    "issue_date": "2026-10-19",
                    "due_date": "2026-11-18",
                    "subtotal": "100.00",
                    "tax_rate": "0.1000",
                    "tax_amount": "10.00",
                    "total": "110.00",
                    "amount_paid": "60.00",
                    "amount_due": "50.00"
               }
          }
     )


class InvoiceListResponse(BaseModel):
     """Schema for paginated invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
     page: int = 1
     page_size: int = 50

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoices": [],
                    "total": 0,
                    "page": 1,
                    "page_size": 50
               }
          }
     )


class InvoiceMutationResponse(BaseModel):
     """Updated invoice plus the status transition the mutation caused."""
     invoice: InvoiceResponse
     status: InvoiceStatus
     previous_status: Optional[InvoiceStatus] = None


class LineItemMutationResponse(InvoiceMutationResponse):
     line_item: LineItemResponse


class PaymentMutationResponse(InvoiceMutationResponse):
     payment: PaymentResponse


class StatusBreakdown(BaseModel):
     count: int
     total: Decimal
     amount_due: Decimal


class ContactInvoiceSummary(BaseModel):
     """Per-contact billing summary."""
     contact_id: int
     total_invoices: int
     total_billed: Decimal
     total_paid: Decimal
     total_outstanding: Decimal
     by_status: Dict[str, StatusBreakdown]
