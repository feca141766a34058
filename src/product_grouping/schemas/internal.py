"""Internal data schemas for receipt line items.

Receipt items arrive as arbitrary JSON written by the extraction model.
They are validated and coerced here, at the boundary; the grouping code
only ever sees ReceiptLineItem instances.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


def _to_decimal(value: Any, default: Decimal) -> Decimal:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError("Boolean is not a number")
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    text = str(value).strip().replace("\u00a0", "").replace(" ", "")
    # Swedish receipts use a decimal comma ("22,50").
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    try:
        return Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e


class ReceiptLineItem(BaseModel):
    """A single purchased item on a receipt."""

    name: str = Field(..., description="Product name exactly as printed")
    price: Decimal = Field(default=Decimal("0"), description="Line total after discount")
    quantity: Decimal = Field(default=Decimal("1"), description="Number of units")
    category: str | None = Field(None, description="Category key from extraction")

    @field_validator("name", mode="before")
    @classmethod
    def name_not_empty(cls, v: Any) -> str:
        """Ensure the product name is a non-empty string."""
        if v is None or not str(v).strip():
            raise ValueError("Name cannot be empty")
        return str(v).strip()

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Decimal:
        return _to_decimal(v, Decimal("0"))

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> Decimal:
        return _to_decimal(v, Decimal("1"))

    @field_validator("category", mode="before")
    @classmethod
    def blank_category_is_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None


def coerce_line_items(raw_items: Any) -> list[ReceiptLineItem]:
    """Validate raw receipt items, dropping the ones that can't be used.

    Args:
        raw_items: The ``items`` JSON value of a receipt (normally a list of dicts)

    Returns:
        Valid line items in their original order
    """
    if not isinstance(raw_items, list):
        return []

    items: list[ReceiptLineItem] = []
    dropped = 0
    for raw in raw_items:
        if not isinstance(raw, dict):
            dropped += 1
            continue
        try:
            items.append(ReceiptLineItem.model_validate(raw))
        except ValidationError:
            dropped += 1

    if dropped:
        logger.warning("Dropped invalid receipt line items", extra={"dropped_count": dropped})
    return items
