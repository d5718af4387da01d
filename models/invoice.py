# models/invoice.py
import enum
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class InvoiceStatus(str, enum.Enum):
     """Lifecycle states of an invoice."""
     DRAFT = "DRAFT"
     SENT = "SENT"
     PARTIALLY_PAID = "PARTIALLY_PAID"
     PAID = "PAID"
     OVERDUE = "OVERDUE"


class Invoice(Base):
     """
     Invoice model - a financial document billed to a contact.

     Totals are stored denormalized and recomputed by the billing engine on
     every line item or payment mutation. Rows are soft-deleted through
     ``deleted_at``; ``version`` is the optimistic-lock counter checked on
     every UPDATE.
     """
     __tablename__ = "invoices"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_number = Column(String(20), nullable=False, unique=True, index=True)

     # References into the contact/booking record store (owned elsewhere)
     contact_id = Column(Integer, nullable=False, index=True)
     booking_id = Column(Integer, nullable=True, index=True)

     status = Column(
          Enum(InvoiceStatus, name="invoice_status", create_constraint=True),
          default=InvoiceStatus.DRAFT,
          nullable=False,
          index=True
     )

     issue_date = Column(Date, nullable=False)
     due_date = Column(Date, nullable=False, index=True)

     # Money
     subtotal = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
     tax_rate = Column(Numeric(6, 4), nullable=False, default=Decimal("0"))
     tax_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
     total = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
     amount_paid = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
     amount_due = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

     notes = Column(Text, nullable=True)
     terms = Column(Text, nullable=True)

     sent_at = Column(DateTime(timezone=True), nullable=True)
     deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

     # Timestamps
     created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
     updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

     version = Column(Integer, nullable=False, default=1)

     # Relationships
     line_items = relationship(
          "InvoiceLineItem",
          back_populates="invoice",
          order_by="InvoiceLineItem.sort_order",
          cascade="all, delete-orphan"
     )
     payments = relationship(
          "Payment",
          back_populates="invoice",
          order_by="desc(Payment.paid_at)",
          cascade="all, delete-orphan"
     )
     # Read-only view; activities are appended through the audit writer
     activities = relationship(
          "InvoiceActivity",
          order_by="desc(InvoiceActivity.id)",
          viewonly=True
     )

     __mapper_args__ = {"version_id_col": version}

     def __repr__(self):
          return f"<Invoice(id={self.id}, number='{self.invoice_number}', total={self.total}, status='{self.status.value}')>"

     @property
     def is_editable(self) -> bool:
          """Line items and header fields may only change while in DRAFT."""
          return self.status == InvoiceStatus.DRAFT
