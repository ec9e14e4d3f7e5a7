from .invoice_service import InvoiceService
from .payment_service import PaymentService
from .credit_note_service import CreditNoteService
from .adjustment_service import AdjustmentService
from .exceptions import (
     LedgerError,
     NotFoundError,
     InvoiceNotFoundError,
     AdjustmentNotFoundError,
     InvalidAmountError,
     AlreadyResolvedError,
)
from .locks import invoice_lock

__all__ = [
     "InvoiceService",
     "PaymentService",
     "CreditNoteService",
     "AdjustmentService",
     "LedgerError",
     "NotFoundError",
     "InvoiceNotFoundError",
     "AdjustmentNotFoundError",
     "InvalidAmountError",
     "AlreadyResolvedError",
     "invoice_lock",
]
