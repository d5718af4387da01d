# services/__init__.py
from .invoice_service import InvoiceService, MutationResult
from .totals import InvoiceTotals, compute_totals, compute_line_total, check_invariants
from .money import to_decimal, round_money, sum_money
from .invoice_state import status_after_payment_change
from .exceptions import (
     BillingError,
     NotFound,
     InvalidState,
     ValidationError,
     ConflictError,
     ArithmeticInvariantViolation,
)

__all__ = [
     "InvoiceService",
     "MutationResult",
     "InvoiceTotals",
     "compute_totals",
     "compute_line_total",
     "check_invariants",
     "to_decimal",
     "round_money",
     "sum_money",
     "status_after_payment_change",
     "BillingError",
     "NotFound",
     "InvalidState",
     "ValidationError",
     "ConflictError",
     "ArithmeticInvariantViolation",
]
