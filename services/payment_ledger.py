# services/payment_ledger.py
"""
Payment ledger - settlements recorded against a sent invoice.

Payments are positive amounts, so the ledger sum (the invoice's
amount_paid) can never go negative. Deleting a payment removes it from the
sum; the invoice service then re-derives balance and status from the
remaining payments.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from models import Invoice, Payment, PaymentMethod, InvoiceActivity, InvoiceActivityType
from models.base import utcnow
from . import record_store
from .audit_service import append_activity
from .exceptions import ValidationError
from .invoice_state import ensure_payable
from .money import Numeric, require_positive, require_scale, require_within

MAX_REFERENCE_LENGTH = 200


def record_payment(
     db: Session,
     invoice: Invoice,
     amount: Numeric,
     method: PaymentMethod = PaymentMethod.OTHER,
     paid_at: Optional[datetime] = None,
     reference: Optional[str] = None,
     notes: Optional[str] = None
) -> Tuple[Payment, List[InvoiceActivity]]:
     """
     Record a payment against a sent invoice.

     Raises:
          InvalidState: if the invoice is still DRAFT
          ValidationError: if amount <= 0 or has sub-cent precision
     """
     ensure_payable(invoice)
     amount = require_scale(require_within(require_positive(amount, "amount"), "amount"), "amount")
     try:
          method = PaymentMethod(method)
     except ValueError:
          raise ValidationError(f"Unknown payment method: {method!r}")
     if reference and len(reference) > MAX_REFERENCE_LENGTH:
          raise ValidationError(f"Reference is too long (max {MAX_REFERENCE_LENGTH} characters)")

     payment = record_store.create_payment(
          db,
          invoice_id=invoice.id,
          amount=amount,
          method=method,
          paid_at=paid_at or utcnow(),
          reference=reference or None,
          notes=notes or None
     )

     activity = append_activity(
          db,
          invoice.id,
          InvoiceActivityType.PAYMENT_RECORDED,
          {"amount": amount, "method": method, "reference": payment.reference}
     )
     return payment, [activity]


def delete_payment(
     db: Session,
     invoice: Invoice,
     payment_id: int
) -> Tuple[Payment, List[InvoiceActivity]]:
     """
     Remove a payment from an invoice and record PAYMENT_DELETED.

     Raises:
          NotFound: if the payment does not exist or belongs to another invoice
     """
     payment = record_store.get_payment(db, invoice.id, payment_id)
     payload = {"amount": payment.amount, "method": payment.method}

     record_store.delete_payment(db, payment)

     activity = append_activity(db, invoice.id, InvoiceActivityType.PAYMENT_DELETED, payload)
     return payment, [activity]
