import enum

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship

from .base import Base, utcnow
from .invoice import enum_values


class AdjustmentType(str, enum.Enum):
     DISCOUNT = "discount"
     REFUND = "refund"


class AdjustmentStatus(str, enum.Enum):
     """pending -> approved | rejected. Both resolutions are final."""
     PENDING = "pending"
     APPROVED = "approved"
     REJECTED = "rejected"


class DiscountScope(str, enum.Enum):
     THIS_INVOICE = "this_invoice"
     THIS_TERM = "this_term"
     ONGOING = "ongoing"


class RefundApplication(str, enum.Enum):
     REFUND_TO_PAYER = "refund_to_payer"
     CREDIT_FOR_FUTURE = "credit_for_future"


class AdjustmentRequest(Base):
     """
     AdjustmentRequest model - a discount or refund proposed against an invoice.

     Has no financial effect until approved. Once approved or rejected the
     row is never changed again.
     """
     __tablename__ = "adjustment_requests"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="RESTRICT"),
          nullable=False,
          index=True
     )
     type = Column(
          Enum(AdjustmentType, name="adjustment_type", values_callable=enum_values, create_constraint=True),
          nullable=False
     )
     reason = Column(Text, nullable=False)

     # Discount
     discount_scope = Column(
          Enum(DiscountScope, name="discount_scope", values_callable=enum_values, create_constraint=True),
          nullable=True
     )
     discount_amount = Column(Numeric(12, 2), nullable=True)
     discount_percent = Column(Numeric(5, 2), nullable=True)

     # Refund
     refund_amount = Column(Numeric(12, 2), nullable=True)
     refund_application = Column(
          Enum(RefundApplication, name="refund_application", values_callable=enum_values, create_constraint=True),
          nullable=True
     )

     # Workflow
     status = Column(
          Enum(AdjustmentStatus, name="adjustment_status", values_callable=enum_values, create_constraint=True),
          default=AdjustmentStatus.PENDING,
          nullable=False,
          index=True
     )
     requested_by = Column(String(100), nullable=False)
     requested_at = Column(DateTime, default=utcnow, nullable=False)
     approved_by = Column(String(100), nullable=True)
     approved_at = Column(DateTime, nullable=True)
     rejected_by = Column(String(100), nullable=True)
     rejected_at = Column(DateTime, nullable=True)
     decision_note = Column(Text, nullable=True)

     # Relationships
     invoice = relationship("Invoice", back_populates="adjustment_requests")
     credit_note = relationship("CreditNote", back_populates="adjustment_request", uselist=False)

     def __repr__(self):
          return (
               f"<AdjustmentRequest(id={self.id}, invoice_id={self.invoice_id}, "
               f"type='{self.type.value}', status='{self.status.value}')>"
          )

     @property
     def is_pending(self) -> bool:
          return self.status == AdjustmentStatus.PENDING
