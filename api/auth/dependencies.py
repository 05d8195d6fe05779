"""
Auth dependencies for resource routes.

A request without an Authorization header carries no identity; whether that
is acceptable is decided by the resource controller, not here.
"""

from __future__ import annotations

from fastapi import Header, HTTPException, status

from . import security


def _extract_bearer_token(authorization: str) -> str:
    parts = authorization.split(" ", 1)
    if len(parts) != 2:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header format.",
        )

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization must be: Bearer <token>.",
        )
    return token


def identity_from_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    return {
        "id": str(payload["sub"]).strip(),
        "email": payload.get("email"),
    }


async def get_optional_user(authorization: str | None = Header(default=None)) -> dict | None:
    raw = (authorization or "").strip()
    if not raw:
        return None
    return identity_from_token(_extract_bearer_token(raw))
