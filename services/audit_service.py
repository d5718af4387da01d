# services/audit_service.py
"""
Audit trail writer - append-only invoice history.

Activities are added to the caller's session, so they commit or roll back
together with the mutation they describe. There is no update or delete path;
the model rejects both at flush time.
"""
import enum
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List

from sqlalchemy.orm import Session

from models import InvoiceActivity, InvoiceActivityType, InvoiceStatus
from . import record_store

logger = logging.getLogger(__name__)


def _serialize(value: Any) -> Any:
     """Make payload values JSON-safe without losing decimal precision."""
     if isinstance(value, Decimal):
          return str(value)
     if isinstance(value, enum.Enum):
          return value.value
     if isinstance(value, (datetime, date)):
          return value.isoformat()
     if isinstance(value, dict):
          return {str(k): _serialize(v) for k, v in value.items()}
     if isinstance(value, (list, tuple)):
          return [_serialize(v) for v in value]
     return value


def append_activity(
     db: Session,
     invoice_id: int,
     activity_type: InvoiceActivityType,
     payload: dict = None
) -> InvoiceActivity:
     """
     Append one immutable activity record for ``invoice_id``.

     Must be called inside the same unit of work as the state change it
     describes.
     """
     activity = record_store.create_activity(
          db,
          invoice_id,
          InvoiceActivityType(activity_type),
          _serialize(payload or {})
     )
     logger.debug("Audit %s queued for invoice %s", activity.type.value, invoice_id)
     return activity


def append_status_change(
     db: Session,
     invoice_id: int,
     previous: InvoiceStatus,
     new: InvoiceStatus
) -> List[InvoiceActivity]:
     """Record a status transition; a no-op (empty list) when the status did not change."""
     if previous == new:
          return []
     return [
          append_activity(
               db,
               invoice_id,
               InvoiceActivityType.INVOICE_STATUS_CHANGED,
               {"from": previous, "to": new}
          )
     ]


def list_activities(db: Session, invoice_id: int, limit: int = 50) -> List[InvoiceActivity]:
     """Invoice history, newest first."""
     return record_store.list_activities(db, invoice_id, limit=limit)
