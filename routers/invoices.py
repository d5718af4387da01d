# routers/invoices.py
"""
Invoice API routes.

Thin HTTP layer over InvoiceService: request bodies are validated by the
Pydantic schemas, every mutation is delegated to the service, and billing
errors are turned into JSON responses by the handler registered in main.py.

Role-based access:
- Any authenticated user: create, read, edit drafts, send, record payments
- Admin / Manager: status override, delete, overdue sweep
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from auth import require_operator, verify_token
from database import get_session
from models import Invoice, InvoiceStatus
from services import InvoiceService, MutationResult
from services import record_store
from schemas.activity import ActivityListResponse, ActivityResponse
from schemas.invoice import (
     ContactInvoiceSummary,
     InvoiceCreate,
     InvoiceListResponse,
     InvoiceMutationResponse,
     InvoiceResponse,
     InvoiceStatusUpdate,
     InvoiceUpdate,
)
from schemas.line_item import LineItemResponse
from schemas.payment import PaymentResponse

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _build_invoice_response(
     invoice: Invoice,
     db: Session,
     include_details: bool = True,
     include_activities: bool = False
) -> InvoiceResponse:
     """
     Helper function to build InvoiceResponse with related data.

     Line items and payments are read fresh from the store rather than from
     the ORM collections, which may predate the last mutation.
     """
     data = {column.key: getattr(invoice, column.key) for column in Invoice.__table__.columns}
     if include_details:
          data["line_items"] = [
               LineItemResponse.model_validate(item)
               for item in record_store.list_line_items(db, invoice.id)
          ]
          data["payments"] = [
               PaymentResponse.model_validate(payment)
               for payment in record_store.list_payments(db, invoice.id)
          ]
     if include_activities:
          data["activities"] = [
               ActivityResponse.model_validate(activity)
               for activity in record_store.list_activities(db, invoice.id)
          ]
     return InvoiceResponse(**data)


def build_mutation_response(result: MutationResult, db: Session) -> dict:
     """Fields shared by every mutation response: invoice + status transition."""
     return {
          "invoice": _build_invoice_response(result.invoice, db),
          "status": result.status,
          "previous_status": result.previous_status,
     }


@router.post(
     "",
     response_model=InvoiceMutationResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a new draft invoice"
)
def create_invoice(
     invoice_data: InvoiceCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Create a DRAFT invoice for a contact.

     - **contact_id**: contact being billed
     - **booking_id**: originating booking (optional)
     - **due_date**: payment due date
     - **tax_rate**: fraction between 0 and 1
     - **line_items**: initial billable rows (optional)
     """
     result = InvoiceService.create_invoice(
          db,
          contact_id=invoice_data.contact_id,
          booking_id=invoice_data.booking_id,
          issue_date=invoice_data.issue_date,
          due_date=invoice_data.due_date,
          tax_rate=invoice_data.tax_rate,
          notes=invoice_data.notes,
          terms=invoice_data.terms,
          line_items=[item.model_dump() for item in invoice_data.line_items],
     )
     return build_mutation_response(result, db)


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List invoices with filters"
)
def list_invoices(
     status_filter: Optional[InvoiceStatus] = Query(None, alias="status", description="Filter by status"),
     contact_id: Optional[int] = Query(None, description="Filter by contact ID"),
     booking_id: Optional[int] = Query(None, description="Filter by booking ID"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=200, description="Items per page"),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Retrieve a paginated list of non-deleted invoices, newest first.
     Line items and payments are omitted; fetch a single invoice for those.
     """
     invoices, total = InvoiceService.list_invoices(
          db,
          status=status_filter,
          contact_id=contact_id,
          booking_id=booking_id,
          page=page,
          page_size=page_size
     )
     return InvoiceListResponse(
          invoices=[_build_invoice_response(inv, db, include_details=False) for inv in invoices],
          total=total,
          page=page,
          page_size=page_size
     )


@router.get(
     "/contact/{contact_id}/summary",
     response_model=ContactInvoiceSummary,
     summary="Get a contact's invoice summary"
)
def get_contact_invoice_summary(
     contact_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Summary statistics for a contact's invoices: totals billed, paid and
     outstanding, plus count and amounts per status.
     """
     return InvoiceService.summarize_contact(db, contact_id)


@router.post(
     "/overdue/mark",
     summary="Mark past-due invoices as overdue"
)
def mark_overdue_invoices(
     db: Session = Depends(get_session),
     token: dict = Depends(require_operator)
):
     """
     Move every SENT or PARTIALLY_PAID invoice past its due date to OVERDUE.
     Normally run by the daily job in jobs.py.
     """
     results = InvoiceService.mark_overdue_invoices(db)
     return {
          "marked": len(results),
          "invoice_ids": [result.invoice.id for result in results],
     }


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Retrieve an invoice with its line items, payments and recent history.
     """
     invoice = InvoiceService.get_invoice(db, invoice_id)
     return _build_invoice_response(invoice, db, include_activities=True)


@router.put(
     "/{invoice_id}",
     response_model=InvoiceMutationResponse,
     summary="Update a draft invoice"
)
def update_invoice(
     invoice_id: int,
     invoice_data: InvoiceUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Update header fields of a DRAFT invoice. Only provided fields change;
     a new tax rate recomputes the totals.
     """
     result = InvoiceService.update_invoice(
          db,
          invoice_id,
          **invoice_data.model_dump(exclude_unset=True)
     )
     return build_mutation_response(result, db)


@router.post(
     "/{invoice_id}/send",
     response_model=InvoiceMutationResponse,
     summary="Send a draft invoice"
)
def send_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Move a DRAFT invoice to SENT. Its line items are locked from then on.
     """
     result = InvoiceService.send_invoice(db, invoice_id)
     return build_mutation_response(result, db)


@router.patch(
     "/{invoice_id}/status",
     response_model=InvoiceMutationResponse,
     summary="Override invoice status"
)
def set_invoice_status(
     invoice_id: int,
     body: InvoiceStatusUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_operator)
):
     """
     Operator override: set the status unconditionally. Requesting the
     current status changes nothing and writes no history entry.
     """
     result = InvoiceService.set_status(db, invoice_id, body.status)
     return build_mutation_response(result, db)


@router.get(
     "/{invoice_id}/activities",
     response_model=ActivityListResponse,
     summary="Get invoice history"
)
def list_invoice_activities(
     invoice_id: int,
     limit: int = Query(50, ge=1, le=500, description="Maximum number of records"),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """Audit trail of the invoice, newest first."""
     activities = InvoiceService.list_activities(db, invoice_id, limit=limit)
     return ActivityListResponse(
          activities=[ActivityResponse.model_validate(activity) for activity in activities]
     )


@router.delete(
     "/{invoice_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete invoice"
)
def delete_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_operator)
):
     """
     Soft-delete an invoice. The record and its history are kept but it no
     longer appears in any read.
     """
     InvoiceService.delete_invoice(db, invoice_id)
     return None
