# routers/payments.py
"""
Payment API routes.

Recording or deleting a payment re-derives the invoice balance and status
from the full payment set in one transaction. Overpayment is accepted and
shows up as a negative amount_due.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth import verify_token
from database import get_session
from services import InvoiceService, record_store
from schemas.invoice import InvoiceMutationResponse, PaymentMutationResponse
from schemas.payment import PaymentCreate, PaymentResponse
from .invoices import build_mutation_response

router = APIRouter(prefix="/api/invoices", tags=["payments"])


@router.get(
     "/{invoice_id}/payments",
     response_model=List[PaymentResponse],
     summary="List payments for an invoice"
)
def list_payments(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """Payments recorded against the invoice, most recent first."""
     invoice = InvoiceService.get_invoice(db, invoice_id)
     return [PaymentResponse.model_validate(p) for p in record_store.list_payments(db, invoice.id)]


@router.post(
     "/{invoice_id}/payments",
     response_model=PaymentMutationResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def record_payment(
     invoice_id: int,
     payment_data: PaymentCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Record a payment against a sent invoice.

     - **amount**: positive, at most 2 decimal places
     - **method**: CASH, CARD, BANK_TRANSFER or OTHER
     - **paid_at**: defaults to now
     - **reference**: external reference (optional)
     """
     result = InvoiceService.record_payment(
          db,
          invoice_id,
          amount=payment_data.amount,
          method=payment_data.method,
          paid_at=payment_data.paid_at,
          reference=payment_data.reference,
          notes=payment_data.notes
     )
     response = build_mutation_response(result, db)
     response["payment"] = PaymentResponse.model_validate(result.entity)
     return response


@router.delete(
     "/{invoice_id}/payments/{payment_id}",
     response_model=InvoiceMutationResponse,
     summary="Delete a payment"
)
def delete_payment(
     invoice_id: int,
     payment_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """Remove a payment and return the invoice with its re-derived balance and status."""
     result = InvoiceService.delete_payment(db, invoice_id, payment_id)
     return build_mutation_response(result, db)
