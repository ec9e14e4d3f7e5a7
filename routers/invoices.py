"""
Invoice API routes for the finance ledger.

Covers invoices, their payments, adjustment requests filed against them and
the credit notes approved refunds produce. Every route requires an admin or
finance user.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import current_actor, require_finance_user
from models import Invoice
from models.invoice import InvoiceStatus, PayerType
from schemas.invoice import (
     InvoiceCreate,
     InvoiceStatusUpdate,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceSummaryResponse,
)
from schemas.payment import PaymentCreate, PaymentResponse
from schemas.adjustment import (
     AdjustmentCreate,
     AdjustmentResponse,
     AdjustmentListResponse,
     CreditNoteResponse,
)
from services import (
     AdjustmentService,
     CreditNoteService,
     InvoiceService,
     LedgerError,
     PaymentService,
)
from routers import ledger_http_error

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.post(
     "",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a new invoice"
)
def create_invoice(
     invoice_data: InvoiceCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """
     Create a new invoice.

     - **payer_type** / **payer_id**: who is billed
     - **term_id**: term the charge belongs to
     - **gross_amount**: original charge (must be positive)
     - **discount_amount** / **amount_paid**: optional opening values
     - **due_date**: payment due date
     - **status**: stored status (defaults to draft)

     Net amount and balance are computed.
     """
     try:
          invoice = InvoiceService.create_invoice(db, invoice_data, created_by=current_actor(token))
     except LedgerError as exc:
          raise ledger_http_error(exc)

     db.commit()
     db.refresh(invoice)

     return _build_invoice_response(invoice)


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List invoices with filters"
)
def list_invoices(
     term_id: Optional[str] = Query(None, description="Filter by term"),
     status: Optional[InvoiceStatus] = Query(None, description="Filter by effective status"),
     payer_type: Optional[PayerType] = Query(None, description="Filter by payer type"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """
     Retrieve invoices, newest first.

     The **status** filter matches the derived status (e.g. an unpaid invoice
     past its due date is *overdue* whatever its stored status says).
     """
     invoices = InvoiceService.get_invoices(db, term_id=term_id, status=status, payer_type=payer_type)
     return InvoiceListResponse(
          invoices=[_build_invoice_response(inv) for inv in invoices],
          total=len(invoices),
     )


@router.get(
     "/summary",
     response_model=InvoiceSummaryResponse,
     summary="Invoice totals"
)
def get_invoice_summary(
     term_id: Optional[str] = Query(None, description="Restrict to one term"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """
     Summary figures for the finance dashboard.

     Returns:
     - Gross, discount, net and paid totals
     - Outstanding amount (cancelled invoices excluded)
     - Count and balance per effective status
     """
     return InvoiceSummaryResponse(**InvoiceService.summarize_invoices(db, term_id=term_id))


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """Retrieve a specific invoice with its derived status."""
     try:
          invoice = InvoiceService.get_invoice(db, invoice_id)
     except LedgerError as exc:
          raise ledger_http_error(exc)
     return _build_invoice_response(invoice)


@router.patch(
     "/{invoice_id}/status",
     response_model=InvoiceResponse,
     summary="Override stored invoice status"
)
def update_invoice_status(
     invoice_id: int,
     body: InvoiceStatusUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """
     Set the stored status, e.g. to cancel an invoice.

     Amounts are not touched. Cancelled and paid are terminal and are always
     shown as stored.
     """
     try:
          invoice = InvoiceService.update_invoice_status(
               db, invoice_id, body.status, updated_by=body.updated_by or current_actor(token)
          )
     except LedgerError as exc:
          raise ledger_http_error(exc)

     db.commit()
     db.refresh(invoice)

     return _build_invoice_response(invoice)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

@router.post(
     "/{invoice_id}/payments",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def record_payment(
     invoice_id: int,
     body: PaymentCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """
     Record money received against an invoice.

     Updates amount paid and balance. Paying more than the balance is accepted;
     the balance stops at zero.
     """
     try:
          payment = PaymentService.record_payment(db, invoice_id, body, recorded_by=current_actor(token))
     except LedgerError as exc:
          raise ledger_http_error(exc)
     return payment


@router.get(
     "/{invoice_id}/payments",
     response_model=list[PaymentResponse],
     summary="List payments for an invoice"
)
def list_payments(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """Payments for the invoice, most recent first."""
     try:
          return PaymentService.get_payments_for_invoice(db, invoice_id)
     except LedgerError as exc:
          raise ledger_http_error(exc)


# ---------------------------------------------------------------------------
# Adjustments and credit notes
# ---------------------------------------------------------------------------

@router.post(
     "/{invoice_id}/adjustments",
     response_model=AdjustmentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Request a discount or refund"
)
def create_adjustment(
     invoice_id: int,
     body: AdjustmentCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """
     File a discount or refund request. It stays **pending** and has no effect
     on the invoice until approved via `POST /api/adjustments/{id}/decision`.
     """
     try:
          request = AdjustmentService.create_adjustment_request(
               db, invoice_id, body, requested_by=current_actor(token)
          )
     except LedgerError as exc:
          raise ledger_http_error(exc)

     db.commit()
     db.refresh(request)

     return request


@router.get(
     "/{invoice_id}/adjustments",
     response_model=AdjustmentListResponse,
     summary="List adjustment requests for an invoice"
)
def list_invoice_adjustments(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """Adjustment requests for the invoice, most recently filed first."""
     try:
          adjustments = AdjustmentService.get_adjustments_for_invoice(db, invoice_id)
     except LedgerError as exc:
          raise ledger_http_error(exc)
     return AdjustmentListResponse(
          adjustments=[AdjustmentResponse.model_validate(a) for a in adjustments],
          total=len(adjustments),
     )


@router.get(
     "/{invoice_id}/credit-notes",
     response_model=list[CreditNoteResponse],
     summary="List credit notes for an invoice"
)
def list_credit_notes(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """Credit notes issued for approved refunds on the invoice."""
     try:
          InvoiceService.get_invoice(db, invoice_id)
     except LedgerError as exc:
          raise ledger_http_error(exc)
     return CreditNoteService.get_credit_notes_for_invoice(db, invoice_id)


def _build_invoice_response(invoice: Invoice) -> InvoiceResponse:
     """
     Helper function to build InvoiceResponse with the derived status.
     """
     return InvoiceResponse(
          id=invoice.id,
          payer_type=invoice.payer_type,
          payer_id=invoice.payer_id,
          learner_id=invoice.learner_id,
          organisation_id=invoice.organisation_id,
          programme_id=invoice.programme_id,
          term_id=invoice.term_id,
          gross_amount=invoice.gross_amount,
          discount_amount=invoice.discount_amount,
          net_amount=invoice.net_amount,
          amount_paid=invoice.amount_paid,
          balance=invoice.balance,
          currency=invoice.currency,
          issue_date=invoice.issue_date,
          due_date=invoice.due_date,
          status=invoice.effective_status,
          stored_status=invoice.status,
          notes=invoice.notes,
          created_at=invoice.created_at,
          created_by=invoice.created_by,
          updated_at=invoice.updated_at,
          updated_by=invoice.updated_by,
     )
