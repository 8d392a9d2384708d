"""
Exception handlers of the HTTP surface.

Maps the typed exception hierarchy onto status codes and the
``{"ok": false, "error": ...}`` response shape.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.exceptions import (
    BridgeError,
    DeviceNotConnectedError,
    DeviceNotFoundError,
    DeviceTimeoutError,
    FiscalCommandError,
    InvalidAmountError,
    NoFrameError,
    NoPaperError,
    PosDeclinedError,
    PosHandshakeError,
)
from loggers import logger


def _error(status_code: int, **body) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, **body})


def _is_pos_request(request: Request) -> bool:
    return request.url.path.startswith("/pos")


async def device_not_found_handler(request: Request, exc: DeviceNotFoundError) -> JSONResponse:
    return _error(400, error=exc.message)


async def not_connected_handler(request: Request, exc: DeviceNotConnectedError) -> JSONResponse:
    if _is_pos_request(request):
        return _error(503, error="POS_NOT_CONNECTED", message="POS is not connected")
    return _error(503, error="FISCAL_NOT_CONNECTED", message=exc.message)


async def timeout_handler(request: Request, exc: DeviceTimeoutError) -> JSONResponse:
    return _error(504, error="POS_TIMEOUT", message="POS timeout")


async def no_paper_handler(request: Request, exc: NoPaperError) -> JSONResponse:
    return _error(409, error="NO_PAPER", message=exc.cause, code=exc.error_code)


async def fiscal_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    return _error(400, error=exc.message)


async def declined_handler(request: Request, exc: PosDeclinedError) -> JSONResponse:
    return _error(
        409,
        error="POS_DECLINED",
        message=exc.message,
        errorCode=exc.response.terminal_code,
        hostResp=exc.response.host_response,
    )


async def invalid_amount_handler(request: Request, exc: InvalidAmountError) -> JSONResponse:
    return _error(400, error="AMOUNT_REQUIRED_OR_INVALID")


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _error(400, error=str(exc))


async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return _error(500, error=exc.message, code=exc.code)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler; the most specific class wins."""
    app.add_exception_handler(DeviceNotFoundError, device_not_found_handler)
    app.add_exception_handler(DeviceNotConnectedError, not_connected_handler)
    app.add_exception_handler(DeviceTimeoutError, timeout_handler)
    app.add_exception_handler(NoPaperError, no_paper_handler)
    app.add_exception_handler(FiscalCommandError, fiscal_error_handler)
    app.add_exception_handler(NoFrameError, fiscal_error_handler)
    app.add_exception_handler(PosDeclinedError, declined_handler)
    app.add_exception_handler(PosHandshakeError, bridge_error_handler)
    app.add_exception_handler(InvalidAmountError, invalid_amount_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(BridgeError, bridge_error_handler)
