"""Simple JWT authentication helpers."""
from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

import jwt
from fastapi import Header, HTTPException, status

from vetsaas.core.config import settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _decode(authorization: str | None) -> Dict[str, Any]:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise _unauthorized("Missing bearer token")

    token = authorization.split(" ", 1)[1].strip()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    if not payload.get("sub"):
        raise _unauthorized("Subject missing in token")
    return payload


def require_user(authorization: str | None = Header(default=None)) -> Dict[str, Any]:
    """Authenticate a user who may not belong to a tenant yet (onboarding)."""

    payload = _decode(authorization)
    return {"user_id": str(payload["sub"]), "claims": payload}


def require_auth(authorization: str | None = Header(default=None)) -> Dict[str, Any]:
    """Validate a bearer token scoped to a tenant and return decoded claims."""

    payload = _decode(authorization)
    if "tenant_id" not in payload:
        raise _unauthorized("Tenant missing in token")

    try:
        tenant_uuid = UUID(str(payload["tenant_id"]))
    except ValueError as exc:
        raise _unauthorized("Invalid tenant identifier") from exc

    return {
        "user_id": str(payload["sub"]),
        "tenant_id": tenant_uuid,
        "claims": payload,
    }
