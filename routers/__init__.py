from fastapi import HTTPException, status

from services.exceptions import (
     LedgerError,
     NotFoundError,
     AlreadyResolvedError,
)


def ledger_http_error(exc: LedgerError) -> HTTPException:
     """Translate a service-layer ledger error into the matching HTTP error."""
     if isinstance(exc, NotFoundError):
          code = status.HTTP_404_NOT_FOUND
     elif isinstance(exc, AlreadyResolvedError):
          code = status.HTTP_409_CONFLICT
     else:
          # InvalidAmountError and any other validation failure
          code = status.HTTP_400_BAD_REQUEST
     return HTTPException(status_code=code, detail=str(exc))
