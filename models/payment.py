"""
Payment model - append-only record of money received against an invoice.

Rows are never updated or deleted; the invoice's amount_paid is kept equal to
the sum of its payments by PaymentService.
"""
import enum

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship

from .base import Base, utcnow
from .invoice import enum_values


class PaymentMethod(str, enum.Enum):
     MPESA = "mpesa"
     BANK_TRANSFER = "bank_transfer"
     CASH = "cash"
     CARD = "card"
     OTHER = "other"


class Payment(Base):
     """Immutable payment entry. Many per invoice."""
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="RESTRICT"),  # Prevent delete if payments exist
          nullable=False,
          index=True
     )

     amount = Column(Numeric(12, 2), nullable=False)
     method = Column(
          Enum(PaymentMethod, name="payment_method", values_callable=enum_values, create_constraint=True),
          nullable=False
     )
     reference = Column(String(255), nullable=True)
     date = Column(Date, nullable=False, index=True)
     recorded_by = Column(String(100), nullable=False)
     created_at = Column(DateTime, default=utcnow, nullable=False)

     # Relationships
     invoice = relationship("Invoice", back_populates="payments")

     def __repr__(self):
          return f"<Payment(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount}, date={self.date})>"
