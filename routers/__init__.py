# routers/__init__.py
from .invoices import router as invoices_router
from .line_items import router as line_items_router
from .payments import router as payments_router

__all__ = [
     "invoices_router",
     "line_items_router",
     "payments_router",
]
