"""
Ledger error taxonomy.

Services raise these instead of silently doing nothing; routers translate them
into HTTP responses. They subclass ValueError so callers that already catch
ValueError around service calls keep working.
"""


class LedgerError(ValueError):
     """Base class for all invoice ledger errors."""


class NotFoundError(LedgerError):
     """A referenced invoice or adjustment request does not exist."""


class InvoiceNotFoundError(NotFoundError):
     def __init__(self, invoice_id: int):
          self.invoice_id = invoice_id
          super().__init__(f"Invoice with ID {invoice_id} not found")


class AdjustmentNotFoundError(NotFoundError):
     def __init__(self, adjustment_id: int):
          self.adjustment_id = adjustment_id
          super().__init__(f"Adjustment request with ID {adjustment_id} not found")


class InvalidAmountError(LedgerError):
     """Non-positive payment, or a discount / refund the invoice cannot absorb."""


class AlreadyResolvedError(LedgerError):
     """The adjustment request was already approved or rejected."""

     def __init__(self, adjustment_id: int, status: str):
          self.adjustment_id = adjustment_id
          self.status = status
          super().__init__(f"Adjustment request {adjustment_id} is already {status}")
