# services/invoice_state.py
"""
Invoice lifecycle rules.

    DRAFT -> SENT -> PARTIALLY_PAID <-> PAID
    SENT | PARTIALLY_PAID -> OVERDUE (due-date sweep)

Outside DRAFT -> SENT, which is an explicit send, status is derived from the
payment ledger by ``status_after_payment_change``. Both the record-payment
and the delete-payment paths go through that one function.
"""
from decimal import Decimal

from models import InvoiceStatus
from .exceptions import InvalidState

# Statuses that accept payments
PAYABLE_STATUSES = frozenset({
     InvoiceStatus.SENT,
     InvoiceStatus.PARTIALLY_PAID,
     InvoiceStatus.PAID,
     InvoiceStatus.OVERDUE,
})

# Statuses the overdue sweep moves to OVERDUE once the due date has passed
OVERDUE_CANDIDATES = frozenset({
     InvoiceStatus.SENT,
     InvoiceStatus.PARTIALLY_PAID,
})


def status_after_payment_change(amount_paid: Decimal, amount_due: Decimal) -> InvoiceStatus:
     """
     Status of a sent invoice given its recomputed balance.

     Nothing paid reverts to SENT (never DRAFT); a zero or negative balance
     is PAID; anything in between is PARTIALLY_PAID.
     """
     if amount_paid <= 0:
          return InvoiceStatus.SENT
     if amount_due <= 0:
          return InvoiceStatus.PAID
     return InvoiceStatus.PARTIALLY_PAID


def ensure_draft(invoice, action: str) -> None:
     if not invoice.is_editable:
          raise InvalidState(
               f"Cannot {action}: invoice {invoice.invoice_number} is {invoice.status.value}, "
               f"only DRAFT invoices can be changed"
          )


def ensure_sendable(invoice) -> None:
     if invoice.status != InvoiceStatus.DRAFT:
          raise InvalidState(
               f"Only DRAFT invoices can be sent; invoice {invoice.invoice_number} is {invoice.status.value}"
          )


def ensure_payable(invoice) -> None:
     if invoice.status not in PAYABLE_STATUSES:
          raise InvalidState(
               f"Cannot record a payment on invoice {invoice.invoice_number} while it is "
               f"{invoice.status.value}; send it first"
          )
