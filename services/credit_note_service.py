"""
Credit Note Service - records what happens to an approved refund.

A refund paid back to the payer produces a note in CREATED status; a refund
kept as credit for future invoices produces one in APPLIED_TO_FUTURE.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

import config
from models import AdjustmentRequest, CreditNote, Invoice
from models.adjustment_request import RefundApplication
from models.base import utcnow
from models.credit_note import CreditNoteStatus

logger = logging.getLogger(__name__)


def default_refund_application() -> RefundApplication:
     return RefundApplication(config.DEFAULT_REFUND_MODE)


class CreditNoteService:
     """Service class for credit notes."""

     @staticmethod
     def issue(
          db: Session,
          invoice: Invoice,
          request: AdjustmentRequest,
          approved_by: Optional[str]
     ) -> CreditNote:
          """
          Build and add the credit note for an approved refund request.

          requested_by / requested_at are copied from the request; approved_at
          is now. The caller owns the transaction and the invoice lock.
          """
          applied_as = RefundApplication(request.refund_application or RefundApplication.CREDIT_FOR_FUTURE)
          status = (
               CreditNoteStatus.CREATED
               if applied_as == RefundApplication.REFUND_TO_PAYER
               else CreditNoteStatus.APPLIED_TO_FUTURE
          )

          note = CreditNote(
               invoice_id=invoice.id,
               adjustment_request_id=request.id,
               amount=request.refund_amount,
               reason=request.reason,
               applied_as=applied_as,
               status=status,
               requested_by=request.requested_by,
               requested_at=request.requested_at,
               approved_by=approved_by or "",
               approved_at=utcnow(),
          )
          db.add(note)
          db.flush()

          logger.info(
               "Credit note %s for %s issued on invoice %s (%s)",
               note.id, note.amount, invoice.id, note.applied_as.value
          )
          return note

     @staticmethod
     def get_credit_notes_for_invoice(db: Session, invoice_id: int) -> list[CreditNote]:
          """All credit notes issued against an invoice."""
          return (
               db.query(CreditNote)
               .filter(CreditNote.invoice_id == invoice_id)
               .order_by(CreditNote.id)
               .all()
          )
