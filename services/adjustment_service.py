"""
Adjustment Service - two-phase discount / refund workflow.

Requests are filed as PENDING and have no financial effect. A finance user then
resolves each request exactly once:

- REJECTED: the decision is recorded, nothing else changes.
- APPROVED discount: the discount is added to the invoice and net amount and
  balance are recomputed.
- APPROVED refund: a credit note is issued and the balance is reduced by the
  refund (floored at zero). amount_paid and net_amount are left alone.

Resolving a request that is no longer pending raises AlreadyResolvedError and
changes nothing, so a repeated approval can never apply a discount twice.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.orm import Session

from models import AdjustmentRequest, Invoice
from models.adjustment_request import AdjustmentStatus, AdjustmentType
from models.base import utcnow
from schemas.adjustment import AdjustmentCreate
from .credit_note_service import CreditNoteService, default_refund_application
from .exceptions import AdjustmentNotFoundError, AlreadyResolvedError, InvalidAmountError
from .invoice_service import InvoiceService, compute_balance, ZERO
from .locks import invoice_lock

logger = logging.getLogger(__name__)


def resolve_discount_amount(request: AdjustmentRequest, invoice: Invoice) -> Decimal:
     """
     The discount an approved request grants.

     An absolute discount_amount wins; otherwise discount_percent of the gross
     amount, rounded half-up to a whole unit; otherwise nothing.
     """
     if request.discount_amount is not None:
          return Decimal(request.discount_amount)
     if request.discount_percent is not None:
          raw = Decimal(invoice.gross_amount) * Decimal(request.discount_percent) / Decimal("100")
          return raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
     return ZERO


class AdjustmentService:
     """Service class for adjustment requests."""

     @staticmethod
     def get_adjustment(db: Session, adjustment_id: int) -> AdjustmentRequest:
          request = db.query(AdjustmentRequest).filter(AdjustmentRequest.id == adjustment_id).first()
          if request is None:
               raise AdjustmentNotFoundError(adjustment_id)
          return request

     @staticmethod
     def create_adjustment_request(
          db: Session,
          invoice_id: int,
          data: AdjustmentCreate,
          requested_by: str
     ) -> AdjustmentRequest:
          """
          File a pending discount or refund request.

          Args:
               db: SQLAlchemy database session
               invoice_id: Invoice the adjustment is for
               data: Validated adjustment payload
               requested_by: User filing the request (used when the payload has none)

          Returns:
               The new pending AdjustmentRequest

          Raises:
               InvoiceNotFoundError: If the invoice does not exist
               InvalidAmountError: If the amounts are missing, negative or larger
                    than the invoice can absorb
          """
          invoice = InvoiceService.get_invoice(db, invoice_id)

          if data.type == AdjustmentType.DISCOUNT:
               if data.discount_amount is None and data.discount_percent is None:
                    raise InvalidAmountError("Discount requests need discount_amount or discount_percent")
               if data.discount_amount is not None:
                    if data.discount_amount <= 0:
                         raise InvalidAmountError("discount_amount must be positive")
                    if data.discount_amount > invoice.net_amount:
                         raise InvalidAmountError(
                              f"discount_amount {data.discount_amount} exceeds net amount {invoice.net_amount}"
                         )
               if data.discount_percent is not None and not (0 < data.discount_percent <= 100):
                    raise InvalidAmountError("discount_percent must be between 0 and 100")
               request = AdjustmentRequest(
                    invoice_id=invoice.id,
                    type=AdjustmentType.DISCOUNT,
                    reason=data.reason,
                    discount_scope=data.discount_scope,
                    discount_amount=data.discount_amount,
                    discount_percent=data.discount_percent,
               )
          else:
               if data.refund_amount is None or data.refund_amount <= 0:
                    raise InvalidAmountError("refund_amount must be positive")
               if data.refund_amount > invoice.net_amount:
                    raise InvalidAmountError(
                         f"refund_amount {data.refund_amount} exceeds net amount {invoice.net_amount}"
                    )
               request = AdjustmentRequest(
                    invoice_id=invoice.id,
                    type=AdjustmentType.REFUND,
                    reason=data.reason,
                    refund_amount=data.refund_amount,
                    refund_application=data.refund_application or default_refund_application(),
               )

          request.status = AdjustmentStatus.PENDING
          request.requested_by = data.requested_by or requested_by
          request.requested_at = utcnow()

          db.add(request)
          db.flush()

          logger.info(
               "Adjustment request %s (%s) filed on invoice %s by %s",
               request.id, request.type.value, invoice.id, request.requested_by
          )
          return request

     @staticmethod
     def update_adjustment_status(
          db: Session,
          adjustment_id: int,
          status: AdjustmentStatus,
          approved_by: Optional[str] = None,
          rejected_by: Optional[str] = None,
          decision_note: Optional[str] = None
     ) -> AdjustmentRequest:
          """
          Approve or reject a pending request.

          The invoice is locked for the whole resolution and everything (request
          status, invoice amounts, credit note) is committed together.

          Raises:
               AdjustmentNotFoundError: If the request does not exist
               AlreadyResolvedError: If the request is not pending
               InvoiceNotFoundError: If the request's invoice is gone
               InvalidAmountError: If a discount would push the net amount below zero
               ValueError: If status is neither approved nor rejected
          """
          status = AdjustmentStatus(status)
          if status == AdjustmentStatus.PENDING:
               raise ValueError("An adjustment can only be resolved to approved or rejected")

          request = AdjustmentService.get_adjustment(db, adjustment_id)

          with invoice_lock(request.invoice_id):
               # Re-read under the lock: another thread may have resolved it meanwhile
               db.refresh(request)
               if not request.is_pending:
                    logger.warning(
                         "Ignoring %s for adjustment %s: already %s",
                         status.value, request.id, request.status.value
                    )
                    raise AlreadyResolvedError(request.id, request.status.value)

               now = utcnow()

               if status == AdjustmentStatus.REJECTED:
                    request.status = AdjustmentStatus.REJECTED
                    request.rejected_by = rejected_by
                    request.rejected_at = now
                    request.decision_note = decision_note
                    db.commit()
                    logger.info("Adjustment %s rejected by %s", request.id, rejected_by)
                    return request

               invoice = InvoiceService.get_invoice_for_update(db, request.invoice_id)

               if request.type == AdjustmentType.DISCOUNT:
                    AdjustmentService._apply_discount(invoice, request, approved_by)
               elif request.refund_amount is not None:
                    CreditNoteService.issue(db, invoice, request, approved_by)
                    invoice.balance = max(ZERO, invoice.balance - request.refund_amount)
                    invoice.touch(approved_by)

               request.status = AdjustmentStatus.APPROVED
               request.approved_by = approved_by
               request.approved_at = now
               request.decision_note = decision_note
               db.commit()

          logger.info(
               "Adjustment %s approved by %s (invoice %s: net=%s, balance=%s)",
               request.id, approved_by, invoice.id, invoice.net_amount, invoice.balance
          )
          return request

     @staticmethod
     def _apply_discount(invoice: Invoice, request: AdjustmentRequest, approved_by: Optional[str]) -> None:
          discount = resolve_discount_amount(request, invoice)
          total_discount = invoice.discount_amount + discount
          new_net = invoice.gross_amount - total_discount
          if new_net < 0:
               raise InvalidAmountError(
                    f"Discount of {discount} would make invoice {invoice.id} net amount negative"
               )
          invoice.discount_amount = total_discount
          invoice.net_amount = new_net
          invoice.balance = compute_balance(new_net, invoice.amount_paid)
          invoice.touch(approved_by)

     @staticmethod
     def get_adjustments_for_invoice(db: Session, invoice_id: int) -> list[AdjustmentRequest]:
          """Requests for an invoice, most recently filed first."""
          InvoiceService.get_invoice(db, invoice_id)
          return (
               db.query(AdjustmentRequest)
               .filter(AdjustmentRequest.invoice_id == invoice_id)
               .order_by(AdjustmentRequest.requested_at.desc(), AdjustmentRequest.id.desc())
               .all()
          )

     @staticmethod
     def get_pending_adjustments(db: Session) -> list[AdjustmentRequest]:
          """The approval queue, in the order requests were filed."""
          return (
               db.query(AdjustmentRequest)
               .filter(AdjustmentRequest.status == AdjustmentStatus.PENDING)
               .order_by(AdjustmentRequest.id)
               .all()
          )
