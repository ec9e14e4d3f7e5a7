"""
Adjustment approval API.

GET  /api/adjustments?status=pending : the approval queue
GET  /api/adjustments/{id}           : one request
POST /api/adjustments/{id}/decision  : approve or reject a pending request

Approving a discount rewrites the invoice's discount, net amount and balance;
approving a refund issues a credit note and lowers the balance. A request can
be decided once; deciding it again returns 409 and changes nothing.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import current_actor, require_finance_user
from models.adjustment_request import AdjustmentStatus
from schemas.adjustment import AdjustmentDecision, AdjustmentResponse, AdjustmentListResponse
from services import AdjustmentService, LedgerError
from routers import ledger_http_error

router = APIRouter(prefix="/api/adjustments", tags=["adjustments"])


@router.get(
     "",
     response_model=AdjustmentListResponse,
     summary="List pending adjustment requests"
)
def list_adjustments(
     status_filter: AdjustmentStatus = Query(
          AdjustmentStatus.PENDING,
          alias="status",
          description="Only the pending queue is listed"
     ),
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """Pending requests awaiting a decision, oldest first."""
     if status_filter != AdjustmentStatus.PENDING:
          raise HTTPException(
               status_code=status.HTTP_400_BAD_REQUEST,
               detail="Only status=pending is supported; list resolved requests per invoice"
          )
     pending = AdjustmentService.get_pending_adjustments(db)
     return AdjustmentListResponse(
          adjustments=[AdjustmentResponse.model_validate(a) for a in pending],
          total=len(pending),
     )


@router.get(
     "/{adjustment_id}",
     response_model=AdjustmentResponse,
     summary="Get adjustment request by ID"
)
def get_adjustment(
     adjustment_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     try:
          return AdjustmentService.get_adjustment(db, adjustment_id)
     except LedgerError as exc:
          raise ledger_http_error(exc)


@router.post(
     "/{adjustment_id}/decision",
     response_model=AdjustmentResponse,
     summary="Approve or reject an adjustment request"
)
def decide_adjustment(
     adjustment_id: int,
     body: AdjustmentDecision,
     db: Session = Depends(get_session),
     token: dict = Depends(require_finance_user)
):
     """
     Resolve a pending request.

     - **decision**: `approved` or `rejected`
     - **approved_by** / **rejected_by**: defaults to the authenticated user
     - **decision_note**: optional note stored with the decision
     """
     actor = current_actor(token)
     decision = AdjustmentStatus(body.decision)
     try:
          request = AdjustmentService.update_adjustment_status(
               db,
               adjustment_id,
               decision,
               approved_by=(body.approved_by or actor) if decision == AdjustmentStatus.APPROVED else None,
               rejected_by=(body.rejected_by or actor) if decision == AdjustmentStatus.REJECTED else None,
               decision_note=body.decision_note,
          )
     except LedgerError as exc:
          raise ledger_http_error(exc)
     return request
