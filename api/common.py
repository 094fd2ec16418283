"""Pieces shared by the relay and worker FastAPI apps."""

import hmac
from typing import Callable, Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import CredentialError
from sentinel import Sentinel
from sentinel.config import ConfigError


API_KEY_HEADER = "X-API-Key"


def api_key_guard(expected: str) -> Callable:
    """Dependency that rejects requests whose X-API-Key doesn't match.

    An unconfigured key rejects everything.
    """
    def check(x_api_key: Optional[str] = Header(default=None)) -> None:
        if not expected or not x_api_key or not hmac.compare_digest(x_api_key, expected):
            raise HTTPException(status_code=401, detail="Unauthorized")
    return check


def _field_name(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    return ".".join(loc) or "body"


def install_error_handlers(app: FastAPI) -> None:
    """Register the JSON error shapes both services return."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={
                "error": "Not found",
                "path": request.url.path,
                "method": request.method,
            })
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail},
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        names = sorted({_field_name(e) for e in exc.errors()})
        return JSONResponse(status_code=400, content={
            "ok": False,
            "error": f"Missing or invalid fields: {', '.join(names)}",
        })

    @app.exception_handler(ConfigError)
    async def config_error(request: Request, exc: ConfigError):
        Sentinel.print_right(f"[red]Configuration error: {exc}[/red]")
        return JSONResponse(status_code=500, content={
            "ok": False,
            "error": "configuration error",
            "message": str(exc),
        })

    @app.exception_handler(CredentialError)
    async def credential_error(request: Request, exc: CredentialError):
        Sentinel.print_right(f"[red]Credential error: {exc}[/red]")
        return JSONResponse(status_code=502, content={
            "ok": False,
            "error": "credential error",
            "message": str(exc),
        })
