"""Caller identity for note requests.

Every notes route depends on ``get_caller_id``; the string it returns is the
owner token compared against ``Note.owner``. A signed bearer token (``sub``
claim, issued by /auth/login) wins over the ``X-User-Id`` header, which stays
as a fallback for local tools and tests.
"""
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from notekeeper.storage.fs import is_valid_user_id

bearer = HTTPBearer(auto_error=False)


def _secret() -> str:
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError("JWT_SECRET is not set")
    return secret


def _algorithm() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def _lifetime() -> timedelta:
    try:
        return timedelta(minutes=int(os.getenv("JWT_EXP_MINUTES", "15")))
    except ValueError:
        return timedelta(minutes=15)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def issue_token(user_id: str) -> str:
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "iat": int(issued.timestamp()),
        "exp": int((issued + _lifetime()).timestamp()),
    }
    return jwt.encode(claims, _secret(), algorithm=_algorithm())


def owner_from_token(token: str) -> str:
    """Return the owner id carried by ``token``; 401 if it does not verify."""
    try:
        claims = jwt.decode(token, _secret(), algorithms=[_algorithm()])
    except JWTError:
        raise _unauthorized("Invalid or expired token")
    sub = claims.get("sub")
    if not sub:
        raise _unauthorized("Invalid token")
    return str(sub)


def get_caller_id(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> str:
    if creds is not None and creds.scheme.lower() == "bearer":
        caller = owner_from_token(creds.credentials)
    elif x_user_id:
        caller = x_user_id
    else:
        raise _unauthorized("Missing credentials")

    # the id names the owner's directory for the audit log
    if not is_valid_user_id(caller):
        raise _unauthorized("Invalid user id")
    return caller
