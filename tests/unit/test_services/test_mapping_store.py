"""Unit tests for MappingStore with in-memory repository fakes."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.config import settings
from product_grouping.core.exceptions import (
    ConflictError,
    InvalidMergeError,
    PermissionDeniedError,
)
from product_grouping.schemas.grouping import GlobalMappingRef, MappingScope, UserMappingRef
from product_grouping.services.mapping_store import MappingStore


class FakeRows:
    """Tracks mapped_name per row id; ids in ``failing`` raise on write."""

    def __init__(self, rows, failing=(), error=None):
        self.rows = {r.id: r for r in rows}
        self.failing = set(failing)
        self.error = error or SQLAlchemyError("write failed")

    async def find_by_mapped_names(self, *args):
        names = args[-1]
        return [r for r in self.rows.values() if r.mapped_name in names]

    async def set_fields_for_user(self, user_id, id, **values):
        return await self.set_fields(id, **values)

    async def set_fields(self, id, **values):
        if id in self.failing:
            raise self.error
        if id not in self.rows:
            return 0
        for key, value in values.items():
            setattr(self.rows[id], key, value)
        return 1


def _row(original_name, mapped_name):
    return SimpleNamespace(id=uuid4(), original_name=original_name, mapped_name=mapped_name)


@pytest.fixture
def mock_db():
    db = AsyncMock(spec=AsyncSession)
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


@pytest.fixture
def store(mock_db):
    store = MappingStore(mock_db)
    store.mapping_repo = AsyncMock()
    store.global_repo = AsyncMock()
    store.global_repo.find_by_mapped_names.return_value = []
    return store


class TestRenameGroup:
    async def test_partial_failure_keeps_applied_rows(self, store, mock_db):
        ok_row = _row("Mjölk 1L", "Mjölk")
        bad_row = _row("Mjölk 1,5L", "Mjölk")
        store.mapping_repo = FakeRows([ok_row, bad_row], failing=[bad_row.id])

        result = await store.rename_group(uuid4(), "Mjölk", "Mjölk 1L", scope=MappingScope.USER)

        assert result.succeeded == 1
        assert result.failed == 1
        assert result.is_partial is True
        assert result.by_scope["user"].succeeded == 1
        assert result.by_scope["user"].failed == 1
        assert result.failures[0].name == "Mjölk 1,5L"
        assert result.failures[0].error_code == "DB_001"
        assert ok_row.mapped_name == "Mjölk 1L"
        assert bad_row.mapped_name == "Mjölk"
        mock_db.rollback.assert_awaited_once()

    async def test_global_rows_denied_for_regular_user(self, store):
        user_row = _row("Ost", "Ost")
        global_row = _row("OST HUSHÅLL", "Ost")
        store.mapping_repo = FakeRows([user_row])
        store.global_repo = FakeRows([global_row])

        result = await store.rename_group(uuid4(), "Ost", "Hushållsost")

        assert result.succeeded == 1
        assert result.failed == 1
        assert result.by_scope["global"].failed == 1
        assert result.failures[0].error_code == "MAP_003"
        assert user_row.mapped_name == "Hushållsost"
        assert global_row.mapped_name == "Ost"

    async def test_explicit_global_scope_requires_permission(self, store):
        with pytest.raises(PermissionDeniedError):
            await store.rename_group(uuid4(), "Ost", "Hushållsost", scope=MappingScope.GLOBAL)

    async def test_global_writes_can_be_enabled(self, store, monkeypatch):
        monkeypatch.setattr(settings, "allow_user_global_writes", True)
        global_row = _row("OST HUSHÅLL", "Ost")
        store.mapping_repo = FakeRows([])
        store.global_repo = FakeRows([global_row])

        result = await store.rename_group(uuid4(), "Ost", "Hushållsost", scope=MappingScope.GLOBAL)

        assert result.succeeded == 1
        assert global_row.mapped_name == "Hushållsost"

    async def test_every_row_losing_the_connection_is_a_hard_failure(self, store):
        rows = [_row("Ost", "Ost"), _row("Ost skivad", "Ost")]
        error = OperationalError("UPDATE", {}, Exception("connection lost"))
        store.mapping_repo = FakeRows(rows, failing=[r.id for r in rows], error=error)

        with pytest.raises(OperationalError):
            await store.rename_group(uuid4(), "Ost", "Hushållsost", scope=MappingScope.USER)

    async def test_vanished_row_is_skipped(self, store):
        row = _row("Ost", "Ost")
        fake = FakeRows([row])
        store.mapping_repo = fake

        async def find(*args):
            return [row, _row("Borttagen", "Ost")]

        fake.find_by_mapped_names = find
        result = await store.rename_group(uuid4(), "Ost", "Hushållsost", scope=MappingScope.USER)

        assert result.succeeded == 1
        assert result.skipped == 1
        assert result.failed == 0

    async def test_cancellation_skips_remaining_rows(self, store):
        cancel = asyncio.Event()
        rows = [_row("A", "X"), _row("B", "X"), _row("C", "X")]
        fake = FakeRows(rows)
        original = fake.set_fields

        async def set_and_cancel(id, **values):
            cancel.set()
            return await original(id, **values)

        fake.set_fields = set_and_cancel
        store.mapping_repo = fake

        result = await store.rename_group(uuid4(), "X", "Y", MappingScope.USER, cancel=cancel)

        assert result.cancelled is True
        assert result.succeeded == 1
        assert result.skipped == 2
        assert [r.mapped_name for r in rows] == ["Y", "X", "X"]

    async def test_empty_new_name_rejected(self, store):
        with pytest.raises(InvalidMergeError):
            await store.rename_group(uuid4(), "Ost", "  ")


class TestCreateMapping:
    async def test_existing_name_is_rejected(self, store):
        store.mapping_repo.find_by_original_name.return_value = [_row("Ost", "Ost")]

        with pytest.raises(ConflictError):
            await store.create_mapping(uuid4(), "Ost", "Hushållsost", "mejeri")
        store.mapping_repo.create.assert_not_awaited()

    async def test_creates_row(self, store):
        store.mapping_repo.find_by_original_name.return_value = []
        store.mapping_repo.create.side_effect = lambda obj: obj
        user_id = uuid4()

        mapping = await store.create_mapping(user_id, " Ost ", "Hushållsost", "mejeri")

        assert mapping.user_id == user_id
        assert mapping.original_name == "Ost"
        assert mapping.mapped_name == "Hushållsost"

    async def test_empty_group_name_rejected(self, store):
        with pytest.raises(InvalidMergeError):
            await store.create_mapping(uuid4(), "Ost", "")


class TestCategoryAndDelete:
    async def test_update_category_touches_only_user_rows(self, store):
        store.mapping_repo.update_category_for_group.return_value = 2
        user_id = uuid4()

        count = await store.update_category(user_id, "Mjölk", "mejeri")

        assert count == 2
        store.mapping_repo.update_category_for_group.assert_awaited_once_with(
            user_id, "Mjölk", "mejeri"
        )
        assert store.global_repo.mock_calls == []

    async def test_global_delete_denied_for_regular_user(self, store):
        with pytest.raises(PermissionDeniedError):
            await store.delete_mapping(uuid4(), GlobalMappingRef(id=uuid4()))
        store.global_repo.delete_by_id.assert_not_awaited()

    async def test_global_delete_denied_even_with_global_writes(self, store, monkeypatch):
        monkeypatch.setattr(settings, "allow_user_global_writes", True)

        with pytest.raises(PermissionDeniedError):
            await store.delete_mapping(uuid4(), GlobalMappingRef(id=uuid4()))

    async def test_admin_can_delete_global(self, mock_db):
        store = MappingStore(mock_db, is_admin=True)
        store.global_repo = AsyncMock()
        store.global_repo.delete_by_id.return_value = True

        assert await store.delete_mapping(uuid4(), GlobalMappingRef(id=uuid4())) is True

    async def test_deleting_missing_user_row_is_not_fatal(self, store):
        store.mapping_repo.delete_for_user.return_value = False

        assert await store.delete_mapping(uuid4(), UserMappingRef(id=uuid4())) is False
