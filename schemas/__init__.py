from .invoice import (
     InvoiceCreate,
     InvoiceStatusUpdate,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceSummaryResponse,
)
from .payment import PaymentCreate, PaymentResponse
from .adjustment import (
     AdjustmentCreate,
     AdjustmentDecision,
     AdjustmentResponse,
     AdjustmentListResponse,
     CreditNoteResponse,
)

__all__ = [
     "InvoiceCreate",
     "InvoiceStatusUpdate",
     "InvoiceResponse",
     "InvoiceListResponse",
     "InvoiceSummaryResponse",
     "PaymentCreate",
     "PaymentResponse",
     "AdjustmentCreate",
     "AdjustmentDecision",
     "AdjustmentResponse",
     "AdjustmentListResponse",
     "CreditNoteResponse",
]
