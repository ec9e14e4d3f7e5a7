"""
Invoice Service - Business logic layer for invoice operations.

This service handles invoice creation, lookups with derived status, the
administrative status override, and summary figures, separate from the API
layer.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

import config
from models import Invoice, Payment
from models.invoice import InvoiceStatus, PayerType, derive_invoice_status
from schemas.invoice import InvoiceCreate
from .exceptions import InvoiceNotFoundError, InvalidAmountError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def compute_balance(net_amount: Decimal, amount_paid: Decimal) -> Decimal:
     """What is still owed, floored at zero."""
     return max(ZERO, net_amount - amount_paid)


class InvoiceService:
     """Service class for invoice-related business logic."""

     @staticmethod
     def get_invoice(db: Session, invoice_id: int) -> Invoice:
          """
          Fetch one invoice.

          Raises:
               InvoiceNotFoundError: If no invoice has this ID
          """
          invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
          if invoice is None:
               raise InvoiceNotFoundError(invoice_id)
          return invoice

     @staticmethod
     def get_invoice_for_update(db: Session, invoice_id: int) -> Invoice:
          """
          Re-read an invoice before rewriting its amounts.

          Callers must hold invoice_lock(invoice_id). The row is also locked in
          the database where the dialect supports SELECT ... FOR UPDATE.
          """
          invoice = (
               db.query(Invoice)
               .filter(Invoice.id == invoice_id)
               .populate_existing()
               .with_for_update()
               .first()
          )
          if invoice is None:
               raise InvoiceNotFoundError(invoice_id)
          return invoice

     @staticmethod
     def get_invoices(
          db: Session,
          term_id: Optional[str] = None,
          status: Optional[InvoiceStatus] = None,
          payer_type: Optional[PayerType] = None,
          today: Optional[date] = None
     ) -> list[Invoice]:
          """
          List invoices, newest first.

          Args:
               db: SQLAlchemy database session
               term_id: Only invoices for this term
               status: Only invoices whose *effective* status matches
               payer_type: Only invoices billed to this kind of payer
               today: Reference date for overdue derivation (default: today)

          Returns:
               List of Invoice objects
          """
          query = db.query(Invoice)
          if term_id:
               query = query.filter(Invoice.term_id == term_id)
          if payer_type:
               query = query.filter(Invoice.payer_type == payer_type)

          invoices = query.order_by(Invoice.id.desc()).all()

          # Stored status is not the truth for paid / overdue, so filter after deriving
          if status:
               invoices = [
                    inv for inv in invoices
                    if derive_invoice_status(inv, today) == InvoiceStatus(status)
               ]
          return invoices

     @staticmethod
     def create_invoice(db: Session, data: InvoiceCreate, created_by: str) -> Invoice:
          """
          Create an invoice.

          Net amount and balance are computed from gross, discount and paid
          amounts; they are never taken from the caller. A non-zero opening
          amount_paid is recorded as a Payment in the same flush so the
          invoice's payments always add up to amount_paid.

          Args:
               db: SQLAlchemy database session
               data: Validated invoice payload
               created_by: User creating the invoice

          Returns:
               Created Invoice object

          Raises:
               InvalidAmountError: If the amounts are inconsistent
          """
          if data.gross_amount <= 0:
               raise InvalidAmountError("gross_amount must be positive")
          if data.discount_amount < 0 or data.amount_paid < 0:
               raise InvalidAmountError("discount_amount and amount_paid cannot be negative")
          if data.discount_amount > data.gross_amount:
               raise InvalidAmountError("discount_amount cannot exceed gross_amount")

          net_amount = data.gross_amount - data.discount_amount

          invoice = Invoice(
               payer_type=data.payer_type,
               payer_id=data.payer_id,
               learner_id=data.learner_id,
               organisation_id=data.organisation_id,
               programme_id=data.programme_id,
               term_id=data.term_id,
               gross_amount=data.gross_amount,
               discount_amount=data.discount_amount,
               net_amount=net_amount,
               amount_paid=data.amount_paid,
               balance=compute_balance(net_amount, data.amount_paid),
               currency=(data.currency or config.DEFAULT_CURRENCY).upper(),
               issue_date=data.issue_date,
               due_date=data.due_date,
               status=data.status,
               notes=data.notes,
               created_by=data.created_by or created_by,
          )

          db.add(invoice)
          db.flush()  # Flush to get the ID without committing

          if data.amount_paid > 0:
               db.add(Payment(
                    invoice_id=invoice.id,
                    amount=data.amount_paid,
                    method=data.opening_payment_method,
                    reference=data.opening_payment_reference,
                    date=data.issue_date or date.today(),
                    recorded_by=invoice.created_by,
               ))
               db.flush()

          logger.info(
               "Invoice %s created for %s %s (term=%s, net=%s)",
               invoice.id, invoice.payer_type.value, invoice.payer_id, invoice.term_id, invoice.net_amount
          )
          return invoice

     @staticmethod
     def update_invoice_status(
          db: Session,
          invoice_id: int,
          status: InvoiceStatus,
          updated_by: Optional[str] = None
     ) -> Invoice:
          """
          Override the stored status (e.g. manual cancellation).

          Amounts are not recomputed.

          Raises:
               InvoiceNotFoundError: If no invoice has this ID
          """
          invoice = InvoiceService.get_invoice(db, invoice_id)
          previous = invoice.status
          invoice.status = InvoiceStatus(status)
          invoice.touch(updated_by)
          db.flush()

          logger.info("Invoice %s status %s -> %s", invoice.id, previous.value, invoice.status.value)
          return invoice

     @staticmethod
     def summarize_invoices(
          db: Session,
          term_id: Optional[str] = None,
          today: Optional[date] = None
     ) -> dict:
          """
          Calculate totals across invoices (optionally one term).

          Args:
               db: SQLAlchemy database session
               term_id: Restrict to this term
               today: Reference date for overdue derivation (default: today)

          Returns:
               Dictionary with totals and per-effective-status counts
          """
          invoices = InvoiceService.get_invoices(db, term_id=term_id, today=today)

          by_status: dict = {}
          for inv in invoices:
               key = derive_invoice_status(inv, today).value
               bucket = by_status.setdefault(key, {"count": 0, "balance": ZERO})
               bucket["count"] += 1
               bucket["balance"] += inv.balance

          return {
               "term_id": term_id,
               "total_invoices": len(invoices),
               "gross_amount": sum((inv.gross_amount for inv in invoices), ZERO),
               "discount_amount": sum((inv.discount_amount for inv in invoices), ZERO),
               "net_amount": sum((inv.net_amount for inv in invoices), ZERO),
               "amount_paid": sum((inv.amount_paid for inv in invoices), ZERO),
               "outstanding": sum(
                    (inv.balance for inv in invoices
                     if derive_invoice_status(inv, today) != InvoiceStatus.CANCELLED),
                    ZERO
               ),
               "by_status": by_status,
          }
