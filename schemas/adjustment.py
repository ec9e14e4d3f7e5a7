"""
Pydantic schemas for adjustment requests (discounts / refunds), their decisions,
and the credit notes approved refunds produce.
"""
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator

from models.adjustment_request import (
     AdjustmentStatus,
     AdjustmentType,
     DiscountScope,
     RefundApplication,
)
from models.credit_note import CreditNoteStatus


class AdjustmentCreate(BaseModel):
     """
     Request body for POST /invoices/{invoice_id}/adjustments.

     Discounts need an absolute amount or a percentage of the gross amount
     (the absolute amount wins when both are sent). Refunds need refund_amount.
     """
     type: AdjustmentType
     reason: str = Field(..., min_length=1, description="Why the adjustment is needed")

     discount_scope: Optional[DiscountScope] = None
     discount_amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     discount_percent: Optional[Decimal] = Field(None, gt=0, le=100, max_digits=5, decimal_places=2)

     refund_amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     refund_application: Optional[RefundApplication] = None

     requested_by: Optional[str] = Field(None, max_length=100, description="Defaults to the authenticated user")

     @model_validator(mode="after")
     def check_type_fields(self):
          if self.type == AdjustmentType.DISCOUNT:
               if self.discount_amount is None and self.discount_percent is None:
                    raise ValueError("discount requests need discount_amount or discount_percent")
          elif self.refund_amount is None:
               raise ValueError("refund requests need refund_amount")
          return self

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "type": "discount",
                    "reason": "Sibling discount",
                    "discount_scope": "this_term",
                    "discount_percent": 10
               }
          }
     )


class AdjustmentDecision(BaseModel):
     """Request body for POST /adjustments/{adjustment_id}/decision."""
     decision: Literal["approved", "rejected"]
     approved_by: Optional[str] = Field(None, max_length=100)
     rejected_by: Optional[str] = Field(None, max_length=100)
     decision_note: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "decision": "approved",
                    "approved_by": "admin@codewithkids.co.ke",
                    "decision_note": "Approved per sibling policy"
               }
          }
     )


class AdjustmentResponse(BaseModel):
     id: int
     invoice_id: int
     type: AdjustmentType
     reason: str

     discount_scope: Optional[DiscountScope] = None
     discount_amount: Optional[Decimal] = None
     discount_percent: Optional[Decimal] = None
     refund_amount: Optional[Decimal] = None
     refund_application: Optional[RefundApplication] = None

     status: AdjustmentStatus
     requested_by: str
     requested_at: datetime
     approved_by: Optional[str] = None
     approved_at: Optional[datetime] = None
     rejected_by: Optional[str] = None
     rejected_at: Optional[datetime] = None
     decision_note: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class AdjustmentListResponse(BaseModel):
     adjustments: List[AdjustmentResponse]
     total: int


class CreditNoteResponse(BaseModel):
     id: int
     invoice_id: int
     adjustment_request_id: int
     amount: Decimal
     reason: str
     applied_as: RefundApplication
     status: CreditNoteStatus
     requested_by: str
     requested_at: datetime
     approved_by: str
     approved_at: datetime

     model_config = ConfigDict(from_attributes=True)
