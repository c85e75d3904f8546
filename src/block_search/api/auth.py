"""
Propagation Token Check

The re-run route is called by host services only, typically a scheduled job
catching up after a bulk import that bypassed publish events. Callers send
an HS256 bearer token minted with the shared admin secret; the token's
space-delimited `scope` claim must grant the propagation scope.

The dependency returns the token subject so the route can log who asked for
the re-run.
"""

from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings

logger = logging.getLogger("blocksearch.api")

bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_propagation_caller(
    creds: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> str:
    if settings.admin_token_secret is None or not settings.admin_token_secret.get_secret_value():
        logger.error("[Blocksearch] Propagation route called but no admin token secret is set.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Propagation route is not configured.",
        )

    if creds is None:
        raise _unauthorized("Missing bearer token.")

    try:
        claims = jwt.decode(
            creds.credentials,
            settings.admin_token_secret.get_secret_value(),
            algorithms=["HS256"],
            audience=settings.admin_token_audience,
            issuer=settings.admin_token_issuer,
            options={"require": ["exp", "sub", "scope"]},
        )
    except jwt.InvalidTokenError as exc:
        logger.info("[Blocksearch] Rejected propagation token: %s", exc)
        raise _unauthorized("Invalid propagation token.")

    granted = str(claims["scope"]).split()
    if settings.admin_token_scope not in granted:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Token does not grant '{settings.admin_token_scope}'.",
        )

    return claims["sub"]
