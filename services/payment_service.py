"""
Payment Service - append-only payment records against invoices.

Recording a payment:
1. Append an immutable Payment row
2. amount_paid += amount
3. balance = max(0, net_amount - amount_paid)
4. Stored status becomes PAID when nothing is owed, else PARTIALLY_PAID

Overpayment is accepted: the balance floors at zero and the excess is not
tracked as credit.
"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from models import Payment
from models.invoice import InvoiceStatus
from schemas.payment import PaymentCreate
from .exceptions import InvalidAmountError
from .invoice_service import InvoiceService, compute_balance
from .locks import invoice_lock

logger = logging.getLogger(__name__)


class PaymentService:
     """Service class for recording and listing payments."""

     @staticmethod
     def record_payment(db: Session, invoice_id: int, data: PaymentCreate, recorded_by: str) -> Payment:
          """
          Record a payment and bring the invoice totals up to date.

          The invoice is re-read and updated under its lock and the change is
          committed before the lock is released.

          Args:
               db: SQLAlchemy database session
               invoice_id: Invoice being paid
               data: Validated payment payload
               recorded_by: User recording the payment (used when the payload has none)

          Returns:
               The new Payment

          Raises:
               InvoiceNotFoundError: If the invoice does not exist
               InvalidAmountError: If the amount is not positive
          """
          if data.amount is None or data.amount <= 0:
               raise InvalidAmountError("Payment amount must be positive")

          with invoice_lock(invoice_id):
               invoice = InvoiceService.get_invoice_for_update(db, invoice_id)

               payment = Payment(
                    invoice_id=invoice.id,
                    amount=data.amount,
                    method=data.method,
                    reference=data.reference,
                    date=data.date,
                    recorded_by=data.recorded_by or recorded_by,
               )
               db.add(payment)

               new_paid = invoice.amount_paid + data.amount
               overpaid = new_paid - invoice.net_amount
               invoice.amount_paid = new_paid
               invoice.balance = compute_balance(invoice.net_amount, new_paid)
               invoice.status = InvoiceStatus.PAID if invoice.balance <= 0 else InvoiceStatus.PARTIALLY_PAID
               invoice.touch(payment.recorded_by)

               db.commit()

          if overpaid > Decimal("0"):
               logger.warning(
                    "Invoice %s overpaid by %s; balance floored at zero, excess not credited",
                    invoice.id, overpaid
               )
          logger.info(
               "Payment %s of %s recorded on invoice %s (paid=%s, balance=%s)",
               payment.id, payment.amount, invoice.id, invoice.amount_paid, invoice.balance
          )
          return payment

     @staticmethod
     def get_payments_for_invoice(db: Session, invoice_id: int) -> list[Payment]:
          """
          Payments for an invoice, most recent payment date first.

          Payments sharing a date keep the order they were recorded in.

          Raises:
               InvoiceNotFoundError: If the invoice does not exist
          """
          InvoiceService.get_invoice(db, invoice_id)
          return (
               db.query(Payment)
               .filter(Payment.invoice_id == invoice_id)
               .order_by(Payment.date.desc(), Payment.id.asc())
               .all()
          )
