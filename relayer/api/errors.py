from typing import List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class APIError(Exception):
    """Raised by routes and dependencies; rendered as ``{ok: false, error, errors?}``"""

    def __init__(self, status_code: int, error: str, errors: Optional[List[str]] = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.errors = errors


def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    content = {"ok": False, "error": exc.error}
    if exc.errors is not None:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        error = "not_found"
    elif exc.status_code == 405:
        error = "method_not_allowed"
    else:
        error = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": error},
        headers=getattr(exc, "headers", None),
    )
