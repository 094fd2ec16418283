"""HTTP surface of the commit worker: /commit, /scan and /reject."""

from typing import Callable, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from auth import TokenBroker
from relay.schemas import CommitRequest, CommitResult, RejectRequest
from sentinel import Sentinel, __version__
from sentinel.config import Settings
from storage import StorageError
from workflows import (
    CommitFailure,
    CommitHandler,
    InvalidRequest,
    Scanner,
    create_commit_handler,
    create_scanner,
)
from .common import api_key_guard, install_error_handlers


def _result(status_code: int, ok: bool, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code,
                        content=CommitResult(ok=ok, message=message).model_dump())


def create_worker_app(settings: Settings,
                      handler: Optional[CommitHandler] = None,
                      scanner_factory: Optional[Callable[[], Scanner]] = None) -> FastAPI:
    """Build the worker app.

    The handler and scanner are created on first use so that a missing
    setting surfaces as a 500 "configuration error" on the request that
    needs it rather than preventing the service from starting.
    """
    broker = TokenBroker()
    app = FastAPI(title="Drive Sentinel Worker", version=__version__)
    app.state.handler = handler
    install_error_handlers(app)
    require_key = api_key_guard(settings.commit_api_key)

    def get_handler() -> CommitHandler:
        if app.state.handler is None:
            app.state.handler = create_commit_handler(settings, broker)
        return app.state.handler

    def make_scanner() -> Scanner:
        if scanner_factory is not None:
            return scanner_factory()
        return create_scanner(settings, broker)

    @app.get("/")
    def health():
        return {
            "status": "ok",
            "service": "worker",
            "endpoints": ["POST /commit", "POST /scan", "POST /reject"],
        }

    @app.post("/commit", dependencies=[Depends(require_key)])
    def commit(request: CommitRequest):
        try:
            result = get_handler().commit(request)
        except InvalidRequest as e:
            return _result(400, False, str(e))
        except CommitFailure as e:
            Sentinel.print_right(f"[red]{e}[/red]")
            return _result(502, False, str(e))
        return result

    @app.post("/scan", dependencies=[Depends(require_key)])
    def scan():
        try:
            report = make_scanner().run_once()
        except StorageError as e:
            Sentinel.print_right(f"[red]Scan failed: {e}[/red]")
            return _result(502, False, f"Scan failed: {e}")
        return {"ok": True, "message": report.summary(), "report": report.to_dict()}

    @app.post("/reject", dependencies=[Depends(require_key)])
    def reject(request: RejectRequest):
        result = get_handler().reject(request.file_id)
        if not result.ok:
            return _result(502, False, result.message)
        return result

    return app
