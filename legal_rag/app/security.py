from __future__ import annotations

"""API key authentication helpers."""

from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from legal_rag.app.settings import settings


@dataclass(frozen=True)
class AuthContext:
    """Resolved authentication context for the current request."""
    api_key: str | None
    anonymous: bool


async def require_api_key(request: Request) -> AuthContext:
    """Validate the API key, or allow anonymous access when no keys are set."""
    api_key = _extract_api_key(request)
    allowed = settings.api_keys
    if not allowed:
        if settings.allow_anonymous:
            return AuthContext(api_key=None, anonymous=True)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if api_key is None or api_key not in allowed:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthContext(api_key=api_key, anonymous=False)


def _extract_api_key(request: Request) -> str | None:
    """Extract API key from headers."""
    header_key = request.headers.get("x-api-key")
    if header_key:
        return header_key.strip()
    auth = request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip()
    return None
