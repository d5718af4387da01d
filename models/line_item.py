# models/line_item.py
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from .base import Base


class InvoiceLineItem(Base):
     """
     One billable row on an invoice (description x quantity x unit price).
     Owned exclusively by its invoice.
     """
     __tablename__ = "invoice_line_items"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )

     description = Column(String(500), nullable=False)
     quantity = Column(Numeric(10, 2), nullable=False)
     unit_price = Column(Numeric(12, 2), nullable=False)
     total = Column(Numeric(12, 2), nullable=False)
     sort_order = Column(Integer, nullable=False, default=0)

     created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

     # Relationships
     invoice = relationship("Invoice", back_populates="line_items")

     def __repr__(self):
          return f"<InvoiceLineItem(id={self.id}, invoice_id={self.invoice_id}, total={self.total})>"
