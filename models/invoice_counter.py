# models/invoice_counter.py
from sqlalchemy import Column, Integer
from .base import Base


class InvoiceCounter(Base):
     """Per-year sequence backing INV-YYYY-NNNN invoice numbers."""
     __tablename__ = "invoice_counters"

     year = Column(Integer, primary_key=True, autoincrement=False)
     last_number = Column(Integer, nullable=False, default=0)

     def __repr__(self):
          return f"<InvoiceCounter(year={self.year}, last_number={self.last_number})>"
