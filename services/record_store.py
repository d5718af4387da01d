# services/record_store.py
"""
Record store - typed persistence operations the billing engine composes.

Each function is a single SQLAlchemy operation against the caller's session.
Nothing here commits: the invoice service flushes and commits the whole
mutation (ledger change, totals, audit records) as one transaction.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from models import (
     Invoice,
     InvoiceStatus,
     InvoiceLineItem,
     Payment,
     PaymentMethod,
     InvoiceActivity,
     InvoiceActivityType,
     InvoiceCounter,
)
from models.base import utcnow
from .exceptions import NotFound


def get_invoice(db: Session, invoice_id: int, lock: bool = False) -> Invoice:
     """
     Load a non-deleted invoice.

     With ``lock=True`` the row is selected FOR UPDATE (where the dialect
     supports it) and its attributes are re-read even if the instance is
     already in the session.

     Raises:
          NotFound: if the invoice does not exist or is soft-deleted
     """
     query = db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.deleted_at.is_(None))
     if lock:
          query = query.with_for_update().populate_existing()
     invoice = query.first()
     if invoice is None:
          raise NotFound(f"Invoice with ID {invoice_id} not found")
     return invoice


def list_invoices(
     db: Session,
     status: Optional[InvoiceStatus] = None,
     contact_id: Optional[int] = None,
     booking_id: Optional[int] = None,
     offset: int = 0,
     limit: int = 50
) -> Tuple[List[Invoice], int]:
     query = db.query(Invoice).filter(Invoice.deleted_at.is_(None))
     if status is not None:
          query = query.filter(Invoice.status == status)
     if contact_id is not None:
          query = query.filter(Invoice.contact_id == contact_id)
     if booking_id is not None:
          query = query.filter(Invoice.booking_id == booking_id)

     total = query.count()
     invoices = query.order_by(desc(Invoice.id)).offset(offset).limit(limit).all()
     return invoices, total


def find_invoices_past_due(db: Session, today: date, statuses) -> List[Invoice]:
     return (
          db.query(Invoice)
          .filter(
               Invoice.deleted_at.is_(None),
               Invoice.status.in_(list(statuses)),
               Invoice.due_date < today
          )
          .order_by(Invoice.id)
          .all()
     )


def find_invoice_by_booking(db: Session, booking_id: int) -> Optional[Invoice]:
     """The non-deleted invoice billing ``booking_id``, if any."""
     return (
          db.query(Invoice)
          .filter(Invoice.booking_id == booking_id, Invoice.deleted_at.is_(None))
          .first()
     )


def create_invoice(db: Session, **fields) -> Invoice:
     invoice = Invoice(**fields)
     db.add(invoice)
     db.flush()  # Flush to get the ID without committing
     return invoice


def update_invoice(db: Session, invoice: Invoice, **fields) -> Invoice:
     """
     Apply field changes to an invoice.

     ``updated_at`` is always touched so the row is rewritten and its
     version counter checked, even when no other column changed.
     """
     for name, value in fields.items():
          setattr(invoice, name, value)
     invoice.updated_at = utcnow()
     return invoice


def next_invoice_number(db: Session, year: int) -> str:
     """Allocate the next INV-YYYY-NNNN number for ``year``."""
     counter = (
          db.query(InvoiceCounter)
          .filter(InvoiceCounter.year == year)
          .with_for_update()
          .first()
     )
     if counter is None:
          counter = InvoiceCounter(year=year, last_number=1)
          db.add(counter)
     else:
          counter.last_number += 1
     db.flush()
     return f"INV-{year}-{counter.last_number:04d}"


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

def list_line_items(db: Session, invoice_id: int) -> List[InvoiceLineItem]:
     return (
          db.query(InvoiceLineItem)
          .filter(InvoiceLineItem.invoice_id == invoice_id)
          .order_by(InvoiceLineItem.sort_order, InvoiceLineItem.id)
          .all()
     )


def get_line_item(db: Session, invoice_id: int, item_id: int) -> InvoiceLineItem:
     item = (
          db.query(InvoiceLineItem)
          .filter(InvoiceLineItem.id == item_id, InvoiceLineItem.invoice_id == invoice_id)
          .first()
     )
     if item is None:
          raise NotFound(f"Line item with ID {item_id} not found on invoice {invoice_id}")
     return item


def max_sort_order(db: Session, invoice_id: int) -> Optional[int]:
     return (
          db.query(func.max(InvoiceLineItem.sort_order))
          .filter(InvoiceLineItem.invoice_id == invoice_id)
          .scalar()
     )


def create_line_item(
     db: Session,
     invoice_id: int,
     description: str,
     quantity: Decimal,
     unit_price: Decimal,
     total: Decimal,
     sort_order: int
) -> InvoiceLineItem:
     item = InvoiceLineItem(
          invoice_id=invoice_id,
          description=description,
          quantity=quantity,
          unit_price=unit_price,
          total=total,
          sort_order=sort_order
     )
     db.add(item)
     db.flush()
     return item


def delete_line_item(db: Session, item: InvoiceLineItem) -> None:
     db.delete(item)
     db.flush()


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

def list_payments(db: Session, invoice_id: int) -> List[Payment]:
     return (
          db.query(Payment)
          .filter(Payment.invoice_id == invoice_id)
          .order_by(desc(Payment.paid_at), desc(Payment.id))
          .all()
     )


def get_payment(db: Session, invoice_id: int, payment_id: int) -> Payment:
     payment = (
          db.query(Payment)
          .filter(Payment.id == payment_id, Payment.invoice_id == invoice_id)
          .first()
     )
     if payment is None:
          raise NotFound(f"Payment with ID {payment_id} not found on invoice {invoice_id}")
     return payment


def create_payment(
     db: Session,
     invoice_id: int,
     amount: Decimal,
     method: PaymentMethod,
     paid_at,
     reference: Optional[str] = None,
     notes: Optional[str] = None
) -> Payment:
     payment = Payment(
          invoice_id=invoice_id,
          amount=amount,
          method=method,
          paid_at=paid_at,
          reference=reference,
          notes=notes
     )
     db.add(payment)
     db.flush()
     return payment


def delete_payment(db: Session, payment: Payment) -> None:
     db.delete(payment)
     db.flush()


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------

def create_activity(
     db: Session,
     invoice_id: int,
     activity_type: InvoiceActivityType,
     payload: dict
) -> InvoiceActivity:
     activity = InvoiceActivity(
          invoice_id=invoice_id,
          type=activity_type,
          payload=payload,
          created_at=utcnow()
     )
     db.add(activity)
     return activity


def list_activities(db: Session, invoice_id: int, limit: int = 50) -> List[InvoiceActivity]:
     return (
          db.query(InvoiceActivity)
          .filter(InvoiceActivity.invoice_id == invoice_id)
          .order_by(desc(InvoiceActivity.created_at), desc(InvoiceActivity.id))
          .limit(limit)
          .all()
     )
