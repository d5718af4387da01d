# routers/line_items.py
"""
Line item API routes.

Line items can only be changed while their invoice is a DRAFT; every change
recomputes the invoice totals in the same transaction.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth import verify_token
from database import get_session
from services import InvoiceService
from schemas.invoice import InvoiceMutationResponse, LineItemMutationResponse
from schemas.line_item import LineItemCreate, LineItemResponse, LineItemUpdate
from .invoices import build_mutation_response

router = APIRouter(prefix="/api/invoices", tags=["line-items"])


@router.post(
     "/{invoice_id}/line-items",
     response_model=LineItemMutationResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Add a line item"
)
def add_line_item(
     invoice_id: int,
     item_data: LineItemCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Add a billable row to a DRAFT invoice.

     - **description**: what is being billed
     - **quantity**: defaults to 1
     - **unit_price**: price per unit
     - **sort_order**: defaults to the current maximum + 1
     """
     result = InvoiceService.add_line_item(
          db,
          invoice_id,
          description=item_data.description,
          quantity=item_data.quantity,
          unit_price=item_data.unit_price,
          sort_order=item_data.sort_order
     )
     response = build_mutation_response(result, db)
     response["line_item"] = LineItemResponse.model_validate(result.entity)
     return response


@router.put(
     "/{invoice_id}/line-items/{item_id}",
     response_model=LineItemMutationResponse,
     summary="Update a line item"
)
def update_line_item(
     invoice_id: int,
     item_id: int,
     item_data: LineItemUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """Edit a line item on a DRAFT invoice. Omitted fields are left unchanged."""
     result = InvoiceService.update_line_item(
          db,
          invoice_id,
          item_id,
          **item_data.model_dump(exclude_unset=True)
     )
     response = build_mutation_response(result, db)
     response["line_item"] = LineItemResponse.model_validate(result.entity)
     return response


@router.delete(
     "/{invoice_id}/line-items/{item_id}",
     response_model=InvoiceMutationResponse,
     summary="Remove a line item"
)
def remove_line_item(
     invoice_id: int,
     item_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """Remove a line item from a DRAFT invoice and return the recomputed invoice."""
     result = InvoiceService.remove_line_item(db, invoice_id, item_id)
     return build_mutation_response(result, db)
