"""
Pydantic schemas for recording and listing invoice payments.
"""
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from models.payment import PaymentMethod


class PaymentCreate(BaseModel):
     """Request body for POST /invoices/{invoice_id}/payments."""

     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount received")
     method: PaymentMethod = Field(..., description="How the money was received")
     reference: Optional[str] = Field(
          None,
          max_length=255,
          description="External reference (e.g. M-Pesa transaction code)",
     )
     date: date_type = Field(..., description="Date the payment was received")
     recorded_by: Optional[str] = Field(None, max_length=100, description="Defaults to the authenticated user")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": 1500.00,
                    "method": "mpesa",
                    "reference": "QKX7T2ABCD",
                    "date": "2026-01-20",
                    "recorded_by": "finance@codewithkids.co.ke",
               }
          }
     )


class PaymentResponse(BaseModel):
     """A recorded payment."""

     id: int
     invoice_id: int
     amount: Decimal
     method: PaymentMethod
     reference: Optional[str] = None
     date: date_type
     recorded_by: str
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)
