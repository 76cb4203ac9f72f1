from typing import Optional

from fastapi import Header, Request
from pydantic import BaseModel

from relayer.api.errors import APIError


class AuthResult(BaseModel):
    ok: bool
    status_code: int = 200
    error: Optional[str] = None


def check_api_key(value: Optional[str], expected: Optional[str]) -> AuthResult:
    """Compare the ``x-api-key`` header value with the configured key"""
    if not expected:
        return AuthResult(ok=False, status_code=500, error="api_key_not_configured")
    if not value or value != expected:
        return AuthResult(ok=False, status_code=401, error="unauthorized")
    return AuthResult(ok=True)


def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None, alias="x-api-key"),
) -> None:
    result = check_api_key(x_api_key, request.app.state.settings.relayer_api_key)
    if not result.ok:
        raise APIError(result.status_code, result.error)
