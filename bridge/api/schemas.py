"""
Request bodies of the HTTP surface.

Numeric fields accept numbers or strings; the drivers do the parsing.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field


Scalar = Union[str, int, float, None]


class FiscalOpenRequest(BaseModel):
    operator: Scalar = "1"
    password: Scalar = "0000"
    till: Scalar = "1"


class FiscalSaleRequest(BaseModel):
    name: Scalar = "ITEM"
    tax: Scalar = None
    price: Scalar = 0
    quantity: Scalar = None
    department: Scalar = "1"
    unit: Scalar = "BUC"


class FiscalPayRequest(BaseModel):
    mode: Scalar = "cash"
    amount: Scalar = 0


class TextRequest(BaseModel):
    text: Scalar = ""


class PosSaleRequest(BaseModel):
    amount: Scalar = None
    uniqueId: Scalar = None
    currency: Optional[str] = "RON"
    description: Optional[str] = None


class PosRefundRequest(BaseModel):
    amount: Scalar = None
    uniqueId: Scalar = None
    currency: Optional[str] = "RON"
    extra_tags: list[dict[str, Any]] = Field(default_factory=list)
