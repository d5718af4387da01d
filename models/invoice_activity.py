# models/invoice_activity.py
"""
InvoiceActivity model - append-only audit trail of invoice mutations.

Each record stores the activity type and a JSON payload describing exactly
what changed. Records are append-only; modification is prevented at the
application layer by the mapper events below.
"""
import enum
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, JSON, event
from .base import Base, utcnow


class InvoiceActivityType(str, enum.Enum):
     INVOICE_CREATED = "INVOICE_CREATED"
     INVOICE_UPDATED = "INVOICE_UPDATED"
     INVOICE_STATUS_CHANGED = "INVOICE_STATUS_CHANGED"
     INVOICE_SENT = "INVOICE_SENT"
     INVOICE_DELETED = "INVOICE_DELETED"
     PAYMENT_RECORDED = "PAYMENT_RECORDED"
     PAYMENT_DELETED = "PAYMENT_DELETED"
     LINE_ITEM_ADDED = "LINE_ITEM_ADDED"
     LINE_ITEM_UPDATED = "LINE_ITEM_UPDATED"
     LINE_ITEM_DELETED = "LINE_ITEM_DELETED"


class ImmutableActivityError(Exception):
     """Raised when code tries to update or delete an audit record."""


class InvoiceActivity(Base):
     """
     Immutable audit entry. Written in the same transaction as the invoice
     mutation it describes.
     """
     __tablename__ = "invoice_activities"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     type = Column(
          Enum(InvoiceActivityType, name="invoice_activity_type", create_constraint=True),
          nullable=False,
          index=True
     )
     payload = Column(JSON, nullable=False, default=dict)
     created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

     def __repr__(self):
          return f"<InvoiceActivity(id={self.id}, invoice_id={self.invoice_id}, type='{self.type.value}')>"


@event.listens_for(InvoiceActivity, "before_update")
def _reject_activity_update(mapper, connection, target):
     raise ImmutableActivityError(f"Invoice activity {target.id} is append-only and cannot be updated")


@event.listens_for(InvoiceActivity, "before_delete")
def _reject_activity_delete(mapper, connection, target):
     raise ImmutableActivityError(f"Invoice activity {target.id} is append-only and cannot be deleted")
