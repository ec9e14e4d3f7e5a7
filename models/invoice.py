import enum
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Enum, Text
from sqlalchemy.orm import relationship

from .base import Base, utcnow


def enum_values(enum_cls):
     """Persist enum values ("partially_paid") rather than member names."""
     return [member.value for member in enum_cls]


class InvoiceStatus(str, enum.Enum):
     """Stored invoice status. The status shown to users is derived, see derive_invoice_status."""
     DRAFT = "draft"
     SENT = "sent"
     PARTIALLY_PAID = "partially_paid"
     PAID = "paid"
     OVERDUE = "overdue"
     CANCELLED = "cancelled"


class PayerType(str, enum.Enum):
     """Who is billed for the invoice."""
     PARENT = "parent"
     SCHOOL = "school"
     ORGANISATION = "organisation"


# Stored statuses that derivation never overrides
TERMINAL_STATUSES = (InvoiceStatus.CANCELLED, InvoiceStatus.PAID)


class Invoice(Base):
     """
     Invoice model - a term charge billed to a parent, school or organisation.

     Amount fields are kept consistent by the services:
          net_amount = gross_amount - discount_amount
          balance    = max(0, net_amount - amount_paid)
     Approved refunds are the one exception: they lower balance only.
     """
     __tablename__ = "invoices"

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Payer / classification
     payer_type = Column(
          Enum(PayerType, name="payer_type", values_callable=enum_values, create_constraint=True),
          nullable=False,
          index=True
     )
     payer_id = Column(String(64), nullable=False, index=True)
     learner_id = Column(String(64), nullable=True)
     organisation_id = Column(String(64), nullable=True)
     programme_id = Column(String(64), nullable=True)
     term_id = Column(String(64), nullable=False, index=True)

     # Amounts
     gross_amount = Column(Numeric(12, 2), nullable=False)
     discount_amount = Column(Numeric(12, 2), default=Decimal("0"), nullable=False)
     net_amount = Column(Numeric(12, 2), nullable=False)
     amount_paid = Column(Numeric(12, 2), default=Decimal("0"), nullable=False)
     balance = Column(Numeric(12, 2), nullable=False)
     currency = Column(String(3), nullable=False)

     # Dates and status
     issue_date = Column(Date, nullable=True)
     due_date = Column(Date, nullable=False, index=True)
     status = Column(
          Enum(InvoiceStatus, name="invoice_status", values_callable=enum_values, create_constraint=True),
          default=InvoiceStatus.DRAFT,
          nullable=False,
          index=True
     )
     notes = Column(Text, nullable=True)

     # Audit
     created_at = Column(DateTime, default=utcnow, nullable=False)
     created_by = Column(String(100), nullable=False)
     updated_at = Column(DateTime, nullable=True)
     updated_by = Column(String(100), nullable=True)

     # Relationships
     payments = relationship(
          "Payment",
          back_populates="invoice",
          order_by="Payment.id"
     )
     adjustment_requests = relationship(
          "AdjustmentRequest",
          back_populates="invoice",
          order_by="AdjustmentRequest.id"
     )
     credit_notes = relationship(
          "CreditNote",
          back_populates="invoice",
          order_by="CreditNote.id"
     )

     def __repr__(self):
          return (
               f"<Invoice(id={self.id}, net={self.net_amount}, balance={self.balance}, "
               f"status='{self.status.value}', due_date={self.due_date})>"
          )

     @property
     def effective_status(self) -> InvoiceStatus:
          """Status computed from amounts and due date as of today."""
          return derive_invoice_status(self)

     def touch(self, updated_by: Optional[str] = None) -> None:
          """Stamp the modification time (and author, when known)."""
          self.updated_at = utcnow()
          if updated_by:
               self.updated_by = updated_by


def derive_invoice_status(invoice: Invoice, today: Optional[date] = None) -> InvoiceStatus:
     """
     Compute the status an invoice should be shown with.

     Balances and due dates are the ground truth for paid / overdue; the stored
     status only matters for states the numbers cannot express (draft vs sent,
     manual cancellation, manual paid).
     """
     if today is None:
          today = date.today()

     stored = InvoiceStatus(invoice.status)
     if stored in TERMINAL_STATUSES:
          return stored
     if invoice.balance <= 0:
          return InvoiceStatus.PAID
     if invoice.due_date < today and invoice.balance > 0:
          return InvoiceStatus.OVERDUE
     if invoice.amount_paid > 0:
          return InvoiceStatus.PARTIALLY_PAID
     if stored == InvoiceStatus.DRAFT:
          return InvoiceStatus.DRAFT
     return stored
