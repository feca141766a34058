"""Unit tests for line item coercion and grouping schemas."""

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import TypeAdapter, ValidationError

from product_grouping.schemas.grouping import (
    BatchResult,
    GlobalMappingRef,
    MappingRef,
    UserMappingRef,
)
from product_grouping.schemas.internal import ReceiptLineItem, coerce_line_items


class TestReceiptLineItem:
    def test_decimal_comma_and_spaces(self) -> None:
        item = ReceiptLineItem(name=" Mjölk ", price="1 234,50", quantity="2")

        assert item.name == "Mjölk"
        assert item.price == Decimal("1234.50")
        assert item.quantity == Decimal("2")

    def test_defaults(self) -> None:
        item = ReceiptLineItem(name="Ost", price=None, quantity="", category="  ")

        assert item.price == Decimal("0")
        assert item.quantity == Decimal("1")
        assert item.category is None

    def test_float_price_is_exact(self) -> None:
        assert ReceiptLineItem(name="Te", price=0.1).price == Decimal("0.1")

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReceiptLineItem(name="   ")

    def test_garbage_price_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReceiptLineItem(name="Ost", price="gratis")
        with pytest.raises(ValidationError):
            ReceiptLineItem(name="Ost", price=True)


def test_coerce_line_items_drops_invalid(caplog) -> None:
    raw = [
        {"name": "Banan", "price": "12,90", "category": "frukt_gront"},
        {"name": ""},
        "not a dict",
        {"name": "Ost", "price": "abc"},
        {"name": "Kaffe", "quantity": 2},
    ]

    items = coerce_line_items(raw)

    assert [i.name for i in items] == ["Banan", "Kaffe"]
    assert any(r.message == "Dropped invalid receipt line items" for r in caplog.records)


def test_coerce_line_items_non_list() -> None:
    assert coerce_line_items(None) == []
    assert coerce_line_items({"name": "Ost"}) == []


def test_mapping_ref_is_discriminated_by_scope() -> None:
    adapter = TypeAdapter(MappingRef)
    id = uuid4()

    assert adapter.validate_python({"scope": "user", "id": str(id)}) == UserMappingRef(id=id)
    assert adapter.validate_python({"scope": "global", "id": str(id)}) == GlobalMappingRef(id=id)
    with pytest.raises(ValidationError):
        adapter.validate_python({"scope": "team", "id": str(id)})


def test_refs_are_hashable() -> None:
    id = uuid4()
    assert len({UserMappingRef(id=id), UserMappingRef(id=id), GlobalMappingRef(id=id)}) == 2


def test_batch_result_partial() -> None:
    assert BatchResult(operation="x", succeeded=7, failed=2).is_partial is True
    assert BatchResult(operation="x", succeeded=0, failed=2).is_partial is False
    assert BatchResult(operation="x", succeeded=3).ok is True
    assert BatchResult(operation="x", succeeded=3, cancelled=True).ok is False
