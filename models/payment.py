# models/payment.py
import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class PaymentMethod(str, enum.Enum):
     CASH = "CASH"
     CARD = "CARD"
     BANK_TRANSFER = "BANK_TRANSFER"
     OTHER = "OTHER"


class Payment(Base):
     """
     Payment model - a settlement amount recorded against a sent invoice.
     Deleting a payment reverses its effect on the invoice balance.
     """
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )

     amount = Column(Numeric(12, 2), nullable=False)
     method = Column(
          Enum(PaymentMethod, name="payment_method", create_constraint=True),
          default=PaymentMethod.OTHER,
          nullable=False
     )
     reference = Column(String(200), nullable=True)
     notes = Column(Text, nullable=True)
     paid_at = Column(DateTime(timezone=True), nullable=False)

     created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

     # Relationships
     invoice = relationship("Invoice", back_populates="payments")

     def __repr__(self):
          return f"<Payment(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount}, method='{self.method.value}')>"
