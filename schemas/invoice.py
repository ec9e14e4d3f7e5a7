"""
Pydantic schemas for Invoice API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict, model_validator

from models.invoice import InvoiceStatus, PayerType
from models.payment import PaymentMethod


class InvoiceCreate(BaseModel):
     """Schema for creating a new invoice. Net amount and balance are computed, never accepted."""
     payer_type: PayerType = Field(..., description="Who is billed")
     payer_id: str = Field(..., min_length=1, max_length=64, description="Parent / school / organisation ID")
     learner_id: Optional[str] = Field(None, max_length=64)
     organisation_id: Optional[str] = Field(None, max_length=64)
     programme_id: Optional[str] = Field(None, max_length=64)
     term_id: str = Field(..., min_length=1, max_length=64, description="Academic term the charge belongs to")

     gross_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Original charge")
     discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     amount_paid: Decimal = Field(
          default=Decimal("0"),
          ge=0,
          max_digits=12,
          decimal_places=2,
          description="Money already received; recorded as an opening payment",
     )
     opening_payment_method: PaymentMethod = Field(default=PaymentMethod.OTHER)
     opening_payment_reference: Optional[str] = Field(None, max_length=255)
     currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Defaults to the service currency")

     issue_date: Optional[date] = None
     due_date: date = Field(..., description="Payment due date")
     status: InvoiceStatus = Field(default=InvoiceStatus.DRAFT, description="Stored status")
     notes: Optional[str] = None
     created_by: Optional[str] = Field(None, max_length=100, description="Defaults to the authenticated user")

     @model_validator(mode="after")
     def discount_within_gross(self):
          if self.discount_amount > self.gross_amount:
               raise ValueError("discount_amount cannot exceed gross_amount")
          return self

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "payer_type": "parent",
                    "payer_id": "parent-12",
                    "learner_id": "l2",
                    "term_id": "term-1-2026",
                    "gross_amount": 3000.00,
                    "due_date": "2026-02-28",
                    "status": "sent"
               }
          }
     )


class InvoiceStatusUpdate(BaseModel):
     """Administrative override of the stored status (e.g. manual cancellation)."""
     status: InvoiceStatus
     updated_by: Optional[str] = Field(None, max_length=100)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "status": "cancelled"
               }
          }
     )


class InvoiceResponse(BaseModel):
     """Schema for invoice response. `status` is the derived, effective status."""
     id: int
     payer_type: PayerType
     payer_id: str
     learner_id: Optional[str] = None
     organisation_id: Optional[str] = None
     programme_id: Optional[str] = None
     term_id: str

     gross_amount: Decimal
     discount_amount: Decimal
     net_amount: Decimal
     amount_paid: Decimal
     balance: Decimal
     currency: str

     issue_date: Optional[date] = None
     due_date: date
     status: InvoiceStatus
     stored_status: InvoiceStatus
     notes: Optional[str] = None

     created_at: datetime
     created_by: str
     updated_at: Optional[datetime] = None
     updated_by: Optional[str] = None

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 3,
                    "payer_type": "parent",
                    "payer_id": "parent-12",
                    "term_id": "term-1-2026",
                    "gross_amount": 3000.00,
                    "discount_amount": 0.00,
                    "net_amount": 3000.00,
                    "amount_paid": 1500.00,
                    "balance": 1500.00,
                    "currency": "KES",
                    "due_date": "2026-02-28",
                    "status": "partially_paid",
                    "stored_status": "partially_paid",
                    "created_at": "2026-01-31T10:30:00",
                    "created_by": "finance@codewithkids.co.ke"
               }
          }
     )


class InvoiceListResponse(BaseModel):
     """Schema for invoice list response."""
     invoices: List[InvoiceResponse]
     total: int

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoices": [],
                    "total": 0
               }
          }
     )


class StatusBucket(BaseModel):
     count: int = 0
     balance: Decimal = Decimal("0")


class InvoiceSummaryResponse(BaseModel):
     """Totals across invoices, optionally for a single term."""
     term_id: Optional[str] = None
     total_invoices: int
     gross_amount: Decimal
     discount_amount: Decimal
     net_amount: Decimal
     amount_paid: Decimal
     outstanding: Decimal
     by_status: Dict[str, StatusBucket]

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "term_id": "term-1-2026",
                    "total_invoices": 2,
                    "gross_amount": 8000.00,
                    "discount_amount": 0.00,
                    "net_amount": 8000.00,
                    "amount_paid": 1500.00,
                    "outstanding": 6500.00,
                    "by_status": {
                         "partially_paid": {"count": 1, "balance": 1500.00},
                         "overdue": {"count": 1, "balance": 5000.00}
                    }
               }
          }
     )
