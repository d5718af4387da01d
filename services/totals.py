# services/totals.py
"""
Totals engine - pure computation of invoice money fields.

The engine is always fed the complete current line-item list, never an
incremental delta, so repeated add/remove cycles cannot accumulate rounding
error.
"""
from decimal import Decimal
from typing import Any, Iterable, NamedTuple

from .exceptions import ArithmeticInvariantViolation
from .money import Numeric, ZERO, round_money, sum_money, to_decimal


class InvoiceTotals(NamedTuple):
     subtotal: Decimal
     tax_amount: Decimal
     total: Decimal
     amount_due: Decimal


def _field(item: Any, name: str):
     if isinstance(item, dict):
          return item[name]
     return getattr(item, name)


def compute_line_total(quantity: Numeric, unit_price: Numeric) -> Decimal:
     """quantity x unit_price, rounded to currency precision."""
     return round_money(to_decimal(quantity) * to_decimal(unit_price))


def compute_totals(
     line_items: Iterable[Any],
     tax_rate: Numeric,
     amount_paid: Numeric = ZERO
) -> InvoiceTotals:
     """
     Compute (subtotal, tax_amount, total, amount_due).

     Args:
          line_items: objects or dicts exposing ``quantity`` and ``unit_price``
          tax_rate: fraction, 0.1 means 10 %
          amount_paid: sum of recorded payments

     A negative ``amount_due`` means the invoice is overpaid and is returned
     unchanged.
     """
     subtotal = sum_money(
          compute_line_total(_field(item, "quantity"), _field(item, "unit_price"))
          for item in line_items
     )
     tax_amount = round_money(subtotal * to_decimal(tax_rate))
     total = subtotal + tax_amount
     amount_due = round_money(total - to_decimal(amount_paid))
     return InvoiceTotals(subtotal, tax_amount, total, amount_due)


def check_invariants(invoice, payment_amounts: Iterable[Numeric]) -> None:
     """
     Verify an invoice's stored money fields reconcile before they are persisted.

     Raises:
          ArithmeticInvariantViolation: if total != subtotal + tax_amount,
               amount_due != total - amount_paid, or amount_paid differs from
               the sum of recorded payments
     """
     subtotal = to_decimal(invoice.subtotal)
     tax_amount = to_decimal(invoice.tax_amount)
     total = to_decimal(invoice.total)
     amount_paid = to_decimal(invoice.amount_paid)
     amount_due = to_decimal(invoice.amount_due)
     payments_sum = sum_money(payment_amounts)

     details = {
          "invoice_id": invoice.id,
          "subtotal": str(subtotal),
          "tax_amount": str(tax_amount),
          "total": str(total),
          "amount_paid": str(amount_paid),
          "amount_due": str(amount_due),
          "payments_sum": str(payments_sum),
     }

     if total != subtotal + tax_amount:
          raise ArithmeticInvariantViolation("total does not equal subtotal + tax_amount", details)
     if amount_due != total - amount_paid:
          raise ArithmeticInvariantViolation("amount_due does not equal total - amount_paid", details)
     if amount_paid != payments_sum:
          raise ArithmeticInvariantViolation("amount_paid diverges from the sum of payments", details)
