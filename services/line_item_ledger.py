# services/line_item_ledger.py
"""
Line item ledger - billable rows of a draft invoice.

Every function here assumes the invoice was loaded (and locked) by the
invoice service in the current unit of work. Line items can only change
while the invoice is DRAFT. Callers recompute the invoice totals afterwards.
"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from models import Invoice, InvoiceLineItem, InvoiceActivity, InvoiceActivityType
from . import record_store
from .audit_service import append_activity
from .exceptions import ValidationError
from .invoice_state import ensure_draft
from .money import (
     MAX_QUANTITY,
     Numeric,
     require_non_negative,
     require_positive,
     require_scale,
     require_within,
)
from .totals import compute_line_total

MAX_DESCRIPTION_LENGTH = 500


def _clean_description(description: str) -> str:
     description = (description or "").strip()
     if not description:
          raise ValidationError("Description is required")
     if len(description) > MAX_DESCRIPTION_LENGTH:
          raise ValidationError(f"Description is too long (max {MAX_DESCRIPTION_LENGTH} characters)")
     return description


def _clean_quantity(quantity: Numeric):
     quantity = require_within(require_positive(quantity, "quantity"), "quantity", MAX_QUANTITY)
     return require_scale(quantity, "quantity")


def _clean_unit_price(unit_price: Numeric):
     unit_price = require_within(require_non_negative(unit_price, "unit_price"), "unit_price")
     return require_scale(unit_price, "unit_price")


def _clean_sort_order(sort_order: Optional[int]) -> Optional[int]:
     if sort_order is not None and sort_order < 0:
          raise ValidationError(f"sort_order cannot be negative, got {sort_order}")
     return sort_order


def next_sort_order(db: Session, invoice_id: int) -> int:
     """max(existing sort orders) + 1, or 0 for an empty invoice."""
     current = record_store.max_sort_order(db, invoice_id)
     return 0 if current is None else current + 1


def add_line_item(
     db: Session,
     invoice: Invoice,
     description: str,
     quantity: Numeric,
     unit_price: Numeric,
     sort_order: Optional[int] = None,
     audit: bool = True
) -> Tuple[InvoiceLineItem, List[InvoiceActivity]]:
     """
     Append a line item to a draft invoice.

     Returns:
          The created line item and the LINE_ITEM_ADDED activity (none when
          ``audit`` is False, used while the invoice itself is being created)

     Raises:
          InvalidState: if the invoice is not DRAFT
          ValidationError: on empty description, quantity <= 0, unit_price < 0
               or a line total too large for the column
     """
     ensure_draft(invoice, "add line items")
     description = _clean_description(description)
     quantity = _clean_quantity(quantity)
     unit_price = _clean_unit_price(unit_price)
     sort_order = _clean_sort_order(sort_order)

     line_total = require_within(compute_line_total(quantity, unit_price), "line total")
     if sort_order is None:
          sort_order = next_sort_order(db, invoice.id)

     item = record_store.create_line_item(
          db,
          invoice_id=invoice.id,
          description=description,
          quantity=quantity,
          unit_price=unit_price,
          total=line_total,
          sort_order=sort_order
     )

     activities = []
     if audit:
          activities.append(
               append_activity(
                    db,
                    invoice.id,
                    InvoiceActivityType.LINE_ITEM_ADDED,
                    {"description": description, "total": line_total}
               )
          )
     return item, activities


def update_line_item(
     db: Session,
     invoice: Invoice,
     item_id: int,
     description: Optional[str] = None,
     quantity: Optional[Numeric] = None,
     unit_price: Optional[Numeric] = None,
     sort_order: Optional[int] = None
) -> Tuple[InvoiceLineItem, List[InvoiceActivity]]:
     """
     Change fields of a line item on a draft invoice. ``None`` leaves a field as is.

     A LINE_ITEM_UPDATED activity listing ``{field: {from, to}}`` is written
     only when at least one field actually changed.
     """
     ensure_draft(invoice, "edit line items")
     item = record_store.get_line_item(db, invoice.id, item_id)

     updates = {}
     if description is not None:
          updates["description"] = _clean_description(description)
     if quantity is not None:
          updates["quantity"] = _clean_quantity(quantity)
     if unit_price is not None:
          updates["unit_price"] = _clean_unit_price(unit_price)
     if sort_order is not None:
          updates["sort_order"] = _clean_sort_order(sort_order)

     line_total = require_within(
          compute_line_total(
               updates.get("quantity", item.quantity),
               updates.get("unit_price", item.unit_price)
          ),
          "line total"
     )

     original_description = item.description
     changes = {}
     for name, value in updates.items():
          current = getattr(item, name)
          if value != current:
               changes[name] = {"from": current, "to": value}
               setattr(item, name, value)

     item.total = line_total
     db.flush()

     activities = []
     if changes:
          activities.append(
               append_activity(
                    db,
                    invoice.id,
                    InvoiceActivityType.LINE_ITEM_UPDATED,
                    {"description": original_description, "changes": changes}
               )
          )
     return item, activities


def remove_line_item(
     db: Session,
     invoice: Invoice,
     item_id: int
) -> Tuple[InvoiceLineItem, List[InvoiceActivity]]:
     """Delete a line item from a draft invoice and record LINE_ITEM_DELETED."""
     ensure_draft(invoice, "delete line items")
     item = record_store.get_line_item(db, invoice.id, item_id)
     payload = {"description": item.description, "total": item.total}

     record_store.delete_line_item(db, item)

     activity = append_activity(db, invoice.id, InvoiceActivityType.LINE_ITEM_DELETED, payload)
     return item, [activity]
