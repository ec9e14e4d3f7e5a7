"""
CreditNote model - the disposition of an approved refund.

Created only when a refund AdjustmentRequest is approved; immutable afterwards.
The unique adjustment_request_id guarantees one note per refund request.
"""
import enum

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship

from .adjustment_request import RefundApplication
from .base import Base
from .invoice import enum_values


class CreditNoteStatus(str, enum.Enum):
     CREATED = "created"
     APPLIED_TO_FUTURE = "applied_to_future"


class CreditNote(Base):
     __tablename__ = "credit_notes"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="RESTRICT"),
          nullable=False,
          index=True
     )
     adjustment_request_id = Column(
          Integer,
          ForeignKey("adjustment_requests.id", ondelete="RESTRICT"),
          nullable=False,
          unique=True,  # One credit note per approved refund
          index=True
     )

     amount = Column(Numeric(12, 2), nullable=False)
     reason = Column(Text, nullable=False)
     applied_as = Column(
          Enum(RefundApplication, name="credit_note_applied_as", values_callable=enum_values, create_constraint=True),
          nullable=False
     )
     status = Column(
          Enum(CreditNoteStatus, name="credit_note_status", values_callable=enum_values, create_constraint=True),
          nullable=False
     )

     # Copied from the originating request
     requested_by = Column(String(100), nullable=False)
     requested_at = Column(DateTime, nullable=False)
     approved_by = Column(String(100), nullable=False)
     approved_at = Column(DateTime, nullable=False)

     # Relationships
     invoice = relationship("Invoice", back_populates="credit_notes")
     adjustment_request = relationship("AdjustmentRequest", back_populates="credit_note")

     def __repr__(self):
          return f"<CreditNote(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount}, status='{self.status.value}')>"
