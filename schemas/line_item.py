# schemas/line_item.py
"""
Pydantic schemas for invoice line items.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class LineItemCreate(BaseModel):
     """Schema for adding a line item to a draft invoice."""
     description: str = Field(..., min_length=1, max_length=500, description="What is being billed")
     quantity: Decimal = Field(default=Decimal("1"), gt=0, max_digits=10, decimal_places=2)
     unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
     sort_order: Optional[int] = Field(
          None,
          ge=0,
          description="Ordering key; defaults to the current maximum + 1"
     )

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "description": "Portrait session",
                    "quantity": "2",
                    "unit_price": "50.00"
               }
          }
     )


class LineItemUpdate(BaseModel):
     """Schema for editing a line item. Omitted fields are left unchanged."""
     description: Optional[str] = Field(None, min_length=1, max_length=500)
     quantity: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
     unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     sort_order: Optional[int] = Field(None, ge=0)


class LineItemResponse(BaseModel):
     """Schema for line item response."""
     id: int
     invoice_id: int
     description: str
     quantity: Decimal
     unit_price: Decimal
     total: Decimal
     sort_order: int
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)
