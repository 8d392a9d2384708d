"""
HTTP routes of the bridge.

Fiscal register endpoints under ``/fiscal`` and ``/nf``, POS terminal
endpoints under ``/pos``. The device is chosen with ``?dev=A|B``.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from application.fiscal_service import FiscalService
from application.pos_service import PosService
from core.exceptions import InvalidAmountError
from core.value_objects import Money
from domain.device_manager import DeviceManager
from loggers import logger

from .errors import register_exception_handlers
from .schemas import (
    FiscalOpenRequest,
    FiscalPayRequest,
    FiscalSaleRequest,
    PosRefundRequest,
    PosSaleRequest,
    TextRequest,
)


router = APIRouter()


# =============================================================================
# Dependencies
# =============================================================================


def device_label(dev: str = Query("A")) -> str:
    return (dev or "A").strip().upper()


def get_fiscal_service(request: Request) -> FiscalService:
    return request.app.state.fiscal_service


def get_pos_service(request: Request) -> PosService:
    return request.app.state.pos_service


def positive_amount(value: Any) -> Money:
    """
    Parse a POS amount.

    Raises:
        InvalidAmountError: Missing, unparseable or not positive.
    """
    try:
        amount = Money.from_major(value)
    except ValueError:
        raise InvalidAmountError()
    if not amount:
        raise InvalidAmountError()
    return amount


# =============================================================================
# Fiscal Receipt
# =============================================================================


@router.post("/fiscal/open")
async def fiscal_open(
    body: Optional[FiscalOpenRequest] = None,
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    body = body or FiscalOpenRequest()
    outcome = await fiscal.open_receipt(dev, body.operator, body.password, body.till)
    return {"ok": True, "data": outcome.payload}


@router.post("/fiscal/sale")
async def fiscal_sale(
    body: Optional[FiscalSaleRequest] = None,
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    body = body or FiscalSaleRequest()
    outcome = await fiscal.register_sale(
        dev,
        name=body.name,
        tax=body.tax,
        price=body.price,
        quantity=body.quantity,
        department=body.department,
        unit=body.unit,
    )
    return {"ok": True, "data": outcome.payload}


@router.post("/fiscal/text")
async def fiscal_text(
    body: Optional[TextRequest] = None,
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    body = body or TextRequest()
    outcome = await fiscal.print_text(dev, body.text)
    return {"ok": True, "data": outcome.payload}


@router.post("/fiscal/pay")
async def fiscal_pay(
    body: Optional[FiscalPayRequest] = None,
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    body = body or FiscalPayRequest()
    outcome = await fiscal.pay(dev, body.mode, body.amount)
    return {
        "ok": True,
        "data": outcome.payload,
        "status": outcome.pay_status,
        "amount": outcome.pay_amount,
    }


@router.post("/fiscal/close")
async def fiscal_close(
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    outcome = await fiscal.close_receipt(dev)
    return {"ok": True, "data": outcome.payload}


@router.post("/fiscal/cancel")
async def fiscal_cancel(
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    outcome = await fiscal.cancel_receipt(dev)
    return {"ok": True, "data": outcome.payload}


# =============================================================================
# Non-fiscal Slip
# =============================================================================


@router.post("/nf/open")
async def nonfiscal_open(
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    outcome = await fiscal.open_nonfiscal(dev)
    return {"ok": True, "data": outcome.payload}


@router.post("/nf/text")
async def nonfiscal_text(
    body: Optional[TextRequest] = None,
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    body = body or TextRequest()
    outcome = await fiscal.print_nonfiscal_text(dev, body.text)
    return {"ok": True, "data": outcome.payload}


@router.post("/nf/close")
async def nonfiscal_close(
    dev: str = Depends(device_label),
    fiscal: FiscalService = Depends(get_fiscal_service),
) -> dict[str, Any]:
    outcome = await fiscal.close_nonfiscal(dev)
    return {"ok": True, "data": outcome.payload}


# =============================================================================
# POS Terminal
# =============================================================================


@router.post("/pos/sale")
async def pos_sale(
    body: Optional[PosSaleRequest] = None,
    dev: str = Depends(device_label),
    pos: PosService = Depends(get_pos_service),
) -> dict[str, Any]:
    body = body or PosSaleRequest()
    amount = positive_amount(body.amount)
    logger.info(f"/pos/sale dev={dev} amount={amount}")
    response = await pos.sale(dev, amount, body.uniqueId, body.currency or "RON")
    return response.to_dict()


@router.post("/pos/refund")
async def pos_refund(
    body: Optional[PosRefundRequest] = None,
    dev: str = Depends(device_label),
    pos: PosService = Depends(get_pos_service),
) -> dict[str, Any]:
    body = body or PosRefundRequest()
    amount = positive_amount(body.amount)
    logger.info(f"/pos/refund dev={dev} amount={amount}")
    response = await pos.refund(dev, amount, body.uniqueId, body.extra_tags, body.currency or "RON")
    return response.to_dict()


@router.get("/pos/info")
async def pos_info(
    dev: str = Depends(device_label),
    pos: PosService = Depends(get_pos_service),
) -> dict[str, Any]:
    response = await pos.get_info(dev)
    return {"ok": response.approved, "errorCode": response.terminal_code, "tags": response.ascii_tags()}


@router.get("/pos/ping")
async def pos_ping() -> dict[str, Any]:
    return {"ok": True, "msg": "POS bridge running"}


# =============================================================================
# Health
# =============================================================================


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    manager: DeviceManager = request.app.state.device_manager
    return {"ok": True, "devices": manager.get_status()}


# =============================================================================
# Application
# =============================================================================


def create_app(
    device_manager: DeviceManager,
    cors_origins: Sequence[str] = (),
) -> FastAPI:
    """
    Build the HTTP application around a device manager.

    Args:
        device_manager: Registry shared with the job runner.
        cors_origins: Browser origins allowed to call the bridge.
    """
    app = FastAPI(title="Fiscal/POS Bridge", version="1.0.0")
    app.state.device_manager = device_manager
    app.state.fiscal_service = FiscalService(device_manager)
    app.state.pos_service = PosService(device_manager)

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    register_exception_handlers(app)
    app.include_router(router)
    return app
