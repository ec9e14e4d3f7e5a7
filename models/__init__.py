from .base import Base
from .invoice import Invoice
from .payment import Payment
from .adjustment_request import AdjustmentRequest
from .credit_note import CreditNote

__all__ = [
     "Base",
     "Invoice",
     "Payment",
     "AdjustmentRequest",
     "CreditNote",
]
