# schemas/activity.py
from datetime import datetime
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict

from models import InvoiceActivityType


class ActivityResponse(BaseModel):
     """One audit record from an invoice's history."""
     id: int
     invoice_id: int
     type: InvoiceActivityType
     payload: Dict[str, Any]
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class ActivityListResponse(BaseModel):
     activities: List[ActivityResponse]
