# schemas/payment.py
"""
Pydantic schemas for payments recorded against invoices.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from models import PaymentMethod


class PaymentCreate(BaseModel):
     """Request body for POST /api/invoices/{invoice_id}/payments."""

     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount paid")
     method: PaymentMethod = Field(default=PaymentMethod.OTHER, description="How the payment was made")
     paid_at: Optional[datetime] = Field(None, description="When the payment was made (defaults to now)")
     reference: Optional[str] = Field(None, max_length=200, description="External reference, e.g. a transfer ID")
     notes: Optional[str] = Field(None, max_length=1000)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": "60.00",
                    "method": "BANK_TRANSFER",
                    "reference": "TRX-2026-0042",
               }
          }
     )


class PaymentResponse(BaseModel):
     """Schema for payment response."""

     id: int
     invoice_id: int
     amount: Decimal
     method: PaymentMethod
     paid_at: datetime
     reference: Optional[str] = None
     notes: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)
