# services/invoice_service.py
"""
Invoice Service - the billing engine's state machine.

Every invoice mutation goes through this class. Each public method runs as
one unit of work: load and lock the invoice, validate preconditions, apply
the ledger change, recompute totals from the complete line-item and payment
sets, derive the status, append audit records, then commit once. Any error
rolls the whole unit back, so a half-applied mutation is never visible.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from models import (
     Invoice,
     InvoiceActivity,
     InvoiceActivityType,
     InvoiceStatus,
     PaymentMethod,
)
from models.base import utcnow
from . import line_item_ledger, payment_ledger, record_store
from .audit_service import append_activity, append_status_change, list_activities
from .exceptions import ConflictError, InvalidState, ValidationError
from .invoice_state import (
     OVERDUE_CANDIDATES,
     ensure_draft,
     ensure_sendable,
     status_after_payment_change,
)
from .money import ZERO, Numeric, require_scale, require_within, sum_money, to_decimal
from .totals import check_invariants, compute_totals

logger = logging.getLogger(__name__)

TAX_RATE_PLACES = 4
EDITABLE_FIELDS = ("issue_date", "due_date", "tax_rate", "notes", "terms")


@dataclass
class MutationResult:
     """Outcome of one invoice mutation."""
     invoice: Invoice
     status: InvoiceStatus
     previous_status: Optional[InvoiceStatus]
     entity: Any = None
     activities: List[InvoiceActivity] = field(default_factory=list)

     @property
     def status_changed(self) -> bool:
          return self.previous_status is not None and self.previous_status != self.status


def _clean_tax_rate(tax_rate: Numeric) -> Decimal:
     rate = require_scale(tax_rate, "tax_rate", places=TAX_RATE_PLACES)
     if rate < 0 or rate > 1:
          raise ValidationError(f"tax_rate must be a fraction between 0 and 1, got {tax_rate}")
     return rate


@contextmanager
def _unit_of_work(db: Session, action: str, invoice_id: Optional[int] = None):
     """
     Commit everything done inside the block as one transaction.

     A concurrent writer bumping the invoice version surfaces here as
     StaleDataError, and one inserting the same row first (e.g. the year's
     invoice counter) as IntegrityError. Both are reported as ConflictError.
     """
     try:
          yield
          db.flush()
          db.commit()
     except StaleDataError:
          db.rollback()
          logger.warning("Conflict while trying to %s invoice %s; rolled back", action, invoice_id)
          raise ConflictError(
               f"Invoice {invoice_id} was modified concurrently; reload it and retry"
          )
     except IntegrityError as e:
          db.rollback()
          logger.warning("Integrity conflict while trying to %s invoice %s: %s", action, invoice_id, e.orig)
          raise ConflictError(
               f"Could not {action} invoice: a concurrent change got there first; retry"
          )
     except Exception:
          db.rollback()
          raise
     logger.info("Committed %s for invoice %s", action, invoice_id)


class InvoiceService:
     """Service class for invoice lifecycle and money operations."""

     # ------------------------------------------------------------------
     # Internal helpers
     # ------------------------------------------------------------------

     @staticmethod
     def _recompute(db: Session, invoice: Invoice) -> None:
          """
          Recompute every money field from the stored line items and payments.

          Raises:
               ValidationError: if a total exceeds what the money columns hold
               ArithmeticInvariantViolation: if the result does not reconcile;
                    the enclosing unit of work then rolls back
          """
          line_items = record_store.list_line_items(db, invoice.id)
          payment_amounts = [p.amount for p in record_store.list_payments(db, invoice.id)]
          amount_paid = sum_money(payment_amounts)

          totals = compute_totals(line_items, invoice.tax_rate, amount_paid)
          for name, value in totals._asdict().items():
               require_within(value, name)
          require_within(amount_paid, "amount_paid")
          record_store.update_invoice(
               db,
               invoice,
               subtotal=totals.subtotal,
               tax_amount=totals.tax_amount,
               total=totals.total,
               amount_paid=amount_paid,
               amount_due=totals.amount_due
          )
          check_invariants(invoice, payment_amounts)

     @staticmethod
     def _apply_derived_status(db: Session, invoice: Invoice) -> List[InvoiceActivity]:
          """Set the payment-derived status and audit the transition if it changed."""
          previous = invoice.status
          new = status_after_payment_change(
               to_decimal(invoice.amount_paid),
               to_decimal(invoice.amount_due)
          )
          if new != previous:
               record_store.update_invoice(db, invoice, status=new)
          return append_status_change(db, invoice.id, previous, new)

     # ------------------------------------------------------------------
     # Reads
     # ------------------------------------------------------------------

     @staticmethod
     def get_invoice(db: Session, invoice_id: int) -> Invoice:
          return record_store.get_invoice(db, invoice_id)

     @staticmethod
     def list_invoices(
          db: Session,
          status: Optional[InvoiceStatus] = None,
          contact_id: Optional[int] = None,
          booking_id: Optional[int] = None,
          page: int = 1,
          page_size: int = 50
     ):
          offset = (page - 1) * page_size
          return record_store.list_invoices(
               db,
               status=status,
               contact_id=contact_id,
               booking_id=booking_id,
               offset=offset,
               limit=page_size
          )

     @staticmethod
     def list_activities(db: Session, invoice_id: int, limit: int = 50) -> List[InvoiceActivity]:
          record_store.get_invoice(db, invoice_id)
          return list_activities(db, invoice_id, limit=limit)

     @staticmethod
     def summarize_contact(db: Session, contact_id: int) -> dict:
          """
          Per-status counts and sums for one contact's invoices.

          Amounts stay Decimal; the API layer decides how to serialize them.
          """
          invoices, _ = record_store.list_invoices(db, contact_id=contact_id, limit=None)

          by_status = {}
          for status in InvoiceStatus:
               matching = [inv for inv in invoices if inv.status == status]
               by_status[status.value] = {
                    "count": len(matching),
                    "total": sum_money(inv.total for inv in matching),
                    "amount_due": sum_money(inv.amount_due for inv in matching),
               }

          return {
               "contact_id": contact_id,
               "total_invoices": len(invoices),
               "total_billed": sum_money(inv.total for inv in invoices),
               "total_paid": sum_money(inv.amount_paid for inv in invoices),
               "total_outstanding": sum_money(
                    inv.amount_due for inv in invoices if inv.status != InvoiceStatus.DRAFT
               ),
               "by_status": by_status,
          }

     # ------------------------------------------------------------------
     # Invoice header
     # ------------------------------------------------------------------

     @staticmethod
     def create_invoice(
          db: Session,
          contact_id: int,
          due_date: date,
          booking_id: Optional[int] = None,
          issue_date: Optional[date] = None,
          tax_rate: Numeric = ZERO,
          notes: Optional[str] = None,
          terms: Optional[str] = None,
          line_items: Iterable[dict] = ()
     ) -> MutationResult:
          """
          Create a DRAFT invoice, optionally with initial line items.

          Initial items without an explicit sort_order take their position in
          ``line_items``. A single INVOICE_CREATED activity is written.

          Raises:
               InvalidState: if a non-deleted invoice already bills ``booking_id``
          """
          tax_rate = _clean_tax_rate(tax_rate)
          issue_date = issue_date or date.today()

          with _unit_of_work(db, "create"):
               if booking_id is not None:
                    existing = record_store.find_invoice_by_booking(db, booking_id)
                    if existing is not None:
                         raise InvalidState(
                              f"An invoice already exists for booking {booking_id}: {existing.invoice_number}"
                         )
               invoice_number = record_store.next_invoice_number(db, date.today().year)
               invoice = record_store.create_invoice(
                    db,
                    invoice_number=invoice_number,
                    contact_id=contact_id,
                    booking_id=booking_id,
                    status=InvoiceStatus.DRAFT,
                    issue_date=issue_date,
                    due_date=due_date,
                    tax_rate=tax_rate,
                    subtotal=ZERO,
                    tax_amount=ZERO,
                    total=ZERO,
                    amount_paid=ZERO,
                    amount_due=ZERO,
                    notes=notes,
                    terms=terms,
                    updated_at=utcnow()
               )

               for index, item in enumerate(line_items):
                    sort_order = item.get("sort_order")
                    line_item_ledger.add_line_item(
                         db,
                         invoice,
                         description=item["description"],
                         quantity=item.get("quantity", 1),
                         unit_price=item["unit_price"],
                         sort_order=index if sort_order is None else sort_order,
                         audit=False
                    )

               InvoiceService._recompute(db, invoice)
               activity = append_activity(
                    db,
                    invoice.id,
                    InvoiceActivityType.INVOICE_CREATED,
                    {
                         "invoice_number": invoice_number,
                         "contact_id": contact_id,
                         "total": invoice.total,
                    }
               )

          return MutationResult(
               invoice=invoice,
               status=invoice.status,
               previous_status=None,
               entity=invoice,
               activities=[activity]
          )

     @staticmethod
     def update_invoice(db: Session, invoice_id: int, **fields) -> MutationResult:
          """
          Update header fields of a DRAFT invoice.

          Only ``issue_date``, ``due_date``, ``tax_rate``, ``notes`` and
          ``terms`` may change; ``None`` values are ignored. A tax rate change
          recomputes the totals. INVOICE_UPDATED is written only when at
          least one field actually changed.
          """
          unknown = set(fields) - set(EDITABLE_FIELDS)
          if unknown:
               raise ValidationError(f"Cannot update invoice fields: {', '.join(sorted(unknown))}")
          updates = {name: value for name, value in fields.items() if value is not None}
          if "tax_rate" in updates:
               updates["tax_rate"] = _clean_tax_rate(updates["tax_rate"])

          with _unit_of_work(db, "update", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               ensure_draft(invoice, "edit invoice")

               changes = {}
               for name, value in updates.items():
                    current = getattr(invoice, name)
                    if value != current:
                         changes[name] = {"from": current, "to": value}

               activities = []
               record_store.update_invoice(db, invoice, **{k: updates[k] for k in changes})
               if "tax_rate" in changes:
                    InvoiceService._recompute(db, invoice)
               if changes:
                    activities.append(
                         append_activity(
                              db,
                              invoice.id,
                              InvoiceActivityType.INVOICE_UPDATED,
                              {"changes": changes}
                         )
                    )

          return MutationResult(invoice, invoice.status, invoice.status, invoice, activities)

     @staticmethod
     def delete_invoice(db: Session, invoice_id: int) -> MutationResult:
          """Soft-delete an invoice; it disappears from every later read."""
          with _unit_of_work(db, "delete", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               deleted_at = utcnow()
               record_store.update_invoice(db, invoice, deleted_at=deleted_at)
               activity = append_activity(
                    db,
                    invoice.id,
                    InvoiceActivityType.INVOICE_DELETED,
                    {"invoice_number": invoice.invoice_number, "deleted_at": deleted_at}
               )

          return MutationResult(invoice, invoice.status, invoice.status, invoice, [activity])

     # ------------------------------------------------------------------
     # Line items (DRAFT only)
     # ------------------------------------------------------------------

     @staticmethod
     def add_line_item(
          db: Session,
          invoice_id: int,
          description: str,
          quantity: Numeric,
          unit_price: Numeric,
          sort_order: Optional[int] = None
     ) -> MutationResult:
          with _unit_of_work(db, "add line item to", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               item, activities = line_item_ledger.add_line_item(
                    db, invoice, description, quantity, unit_price, sort_order
               )
               InvoiceService._recompute(db, invoice)

          return MutationResult(invoice, invoice.status, invoice.status, item, activities)

     @staticmethod
     def update_line_item(db: Session, invoice_id: int, item_id: int, **fields) -> MutationResult:
          with _unit_of_work(db, "update line item on", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               item, activities = line_item_ledger.update_line_item(db, invoice, item_id, **fields)
               InvoiceService._recompute(db, invoice)

          return MutationResult(invoice, invoice.status, invoice.status, item, activities)

     @staticmethod
     def remove_line_item(db: Session, invoice_id: int, item_id: int) -> MutationResult:
          with _unit_of_work(db, "remove line item from", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               item, activities = line_item_ledger.remove_line_item(db, invoice, item_id)
               InvoiceService._recompute(db, invoice)

          return MutationResult(invoice, invoice.status, invoice.status, item, activities)

     # ------------------------------------------------------------------
     # Lifecycle
     # ------------------------------------------------------------------

     @staticmethod
     def send_invoice(db: Session, invoice_id: int) -> MutationResult:
          """
          DRAFT -> SENT. Locks line items and writes both the generic
          status-changed record and the INVOICE_SENT record.
          """
          with _unit_of_work(db, "send", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               ensure_sendable(invoice)

               previous = invoice.status
               sent_at = utcnow()
               record_store.update_invoice(db, invoice, status=InvoiceStatus.SENT, sent_at=sent_at)

               activities = append_status_change(db, invoice.id, previous, InvoiceStatus.SENT)
               activities.append(
                    append_activity(db, invoice.id, InvoiceActivityType.INVOICE_SENT, {"sent_at": sent_at})
               )

          return MutationResult(invoice, invoice.status, previous, invoice, activities)

     @staticmethod
     def set_status(db: Session, invoice_id: int, status: InvoiceStatus) -> MutationResult:
          """
          Operator override: set any status unconditionally.

          Re-requesting the current status is a no-op and writes no activity.
          """
          try:
               status = InvoiceStatus(status)
          except ValueError:
               raise ValidationError(f"Unknown invoice status: {status!r}")

          with _unit_of_work(db, "set status of", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               previous = invoice.status
               if status != previous:
                    record_store.update_invoice(db, invoice, status=status)
               activities = append_status_change(db, invoice.id, previous, status)

          return MutationResult(invoice, invoice.status, previous, invoice, activities)

     @staticmethod
     def mark_overdue_invoices(db: Session, today: Optional[date] = None) -> List[MutationResult]:
          """
          Move SENT and PARTIALLY_PAID invoices past their due date to OVERDUE.

          Meant for a daily scheduled job (see jobs.py). Each invoice is its own
          unit of work, so one conflict does not block the rest of the sweep.
          """
          today = today or date.today()
          candidates = record_store.find_invoices_past_due(db, today, OVERDUE_CANDIDATES)

          results = []
          for candidate in candidates:
               invoice_id = candidate.id
               try:
                    with _unit_of_work(db, "mark overdue", invoice_id):
                         invoice = record_store.get_invoice(db, invoice_id, lock=True)
                         previous = invoice.status
                         if previous not in OVERDUE_CANDIDATES:
                              continue
                         record_store.update_invoice(db, invoice, status=InvoiceStatus.OVERDUE)
                         activities = append_status_change(db, invoice.id, previous, InvoiceStatus.OVERDUE)
               except ConflictError:
                    continue
               results.append(MutationResult(invoice, invoice.status, previous, invoice, activities))

          logger.info("Marked %d invoice(s) overdue as of %s", len(results), today)
          return results

     # ------------------------------------------------------------------
     # Payments
     # ------------------------------------------------------------------

     @staticmethod
     def record_payment(
          db: Session,
          invoice_id: int,
          amount: Numeric,
          method: PaymentMethod = PaymentMethod.OTHER,
          paid_at=None,
          reference: Optional[str] = None,
          notes: Optional[str] = None
     ) -> MutationResult:
          """
          Record a payment and re-derive balance and status.

          The resulting ``amount_due`` may be negative when the invoice is
          overpaid; it is stored and returned as-is.
          """
          with _unit_of_work(db, "record payment on", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               previous = invoice.status
               payment, activities = payment_ledger.record_payment(
                    db, invoice, amount, method, paid_at, reference, notes
               )
               InvoiceService._recompute(db, invoice)
               activities += InvoiceService._apply_derived_status(db, invoice)

          return MutationResult(invoice, invoice.status, previous, payment, activities)

     @staticmethod
     def delete_payment(db: Session, invoice_id: int, payment_id: int) -> MutationResult:
          with _unit_of_work(db, "delete payment from", invoice_id):
               invoice = record_store.get_invoice(db, invoice_id, lock=True)
               previous = invoice.status
               payment, activities = payment_ledger.delete_payment(db, invoice, payment_id)
               InvoiceService._recompute(db, invoice)
               activities += InvoiceService._apply_derived_status(db, invoice)

          return MutationResult(invoice, invoice.status, previous, payment, activities)
