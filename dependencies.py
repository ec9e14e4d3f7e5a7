"""
Shared FastAPI dependencies: bearer-token verification and finance role checks.

Tokens are issued by the identity service; this service only decodes them.
Only admin and finance users may see or change the ledger.
"""
import logging

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

import config

logger = logging.getLogger(__name__)

FINANCE_ROLES = ("admin", "finance")


def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     if not config.JWT_SECRET:
          # Never verify against an empty key
          logger.error("JWT_SECRET is not configured; rejecting all tokens")
          raise HTTPException(
               status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
               detail="Token verification is not configured"
          )
     token = auth.split(" ")[1]
     try:
          payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
          return payload
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def require_finance_user(token: dict = Depends(verify_token)) -> dict:
     """Allow only admin and finance roles through."""
     if token.get("role") not in FINANCE_ROLES:
          raise HTTPException(
               status_code=status.HTTP_403_FORBIDDEN,
               detail="Only admin and finance users can access the finance ledger"
          )
     return token


def current_actor(token: dict) -> str:
     """Name recorded in created_by / recorded_by / requested_by fields."""
     return str(token.get("email") or token.get("sub") or token.get("id") or "unknown")
