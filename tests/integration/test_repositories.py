"""Integration tests for repository layer."""

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.models import GlobalProductMapping, ProductMapping, Receipt
from product_grouping.repositories.global_mapping import GlobalMappingRepository, OverrideRepository
from product_grouping.repositories.ignored_suggestion import IgnoredSuggestionRepository
from product_grouping.repositories.product_mapping import ProductMappingRepository
from product_grouping.repositories.receipt import ReceiptRepository


async def _mapping(db: AsyncSession, user_id, original_name, mapped_name, category=None):
    return await ProductMappingRepository(db).create(
        ProductMapping(
            user_id=user_id,
            original_name=original_name,
            mapped_name=mapped_name,
            category=category,
        )
    )


class TestProductMappingRepository:
    async def test_queries_are_scoped_to_user(self, db_session, user_id, other_user_id):
        await _mapping(db_session, user_id, "Ost", "Ost")
        other = await _mapping(db_session, other_user_id, "Ost", "Ost")
        repo = ProductMappingRepository(db_session)

        assert [m.original_name for m in await repo.list_for_user(user_id)] == ["Ost"]
        assert await repo.get_for_user(user_id, other.id) is None
        assert await repo.set_fields_for_user(user_id, other.id, mapped_name="X") == 0
        assert await repo.delete_for_user(user_id, other.id) is False

    async def test_find_degenerate(self, db_session, user_id):
        await _mapping(db_session, user_id, "A", "")
        await _mapping(db_session, user_id, "B", "   ")
        await _mapping(db_session, user_id, "C", None)
        await _mapping(db_session, user_id, "D", "Grupp")
        repo = ProductMappingRepository(db_session)

        rows = await repo.find_degenerate(user_id)

        assert [r.original_name for r in rows] == ["A", "B", "C"]

    async def test_delete_degenerate_leaves_others(self, db_session, user_id, other_user_id):
        await _mapping(db_session, user_id, "A", "")
        await _mapping(db_session, user_id, "D", "Grupp")
        await _mapping(db_session, other_user_id, "A", " ")
        repo = ProductMappingRepository(db_session)

        assert await repo.delete_degenerate(user_id) == 1
        assert [r.original_name for r in await repo.list_for_user(user_id)] == ["D"]
        assert len(await repo.list_for_user(other_user_id)) == 1

    async def test_update_category_for_group(self, db_session, user_id):
        await _mapping(db_session, user_id, "Mjölk 1L", "Mjölk", "drycker")
        await _mapping(db_session, user_id, "Mjölk 3%", "Mjölk", None)
        await _mapping(db_session, user_id, "Ost", "Ost", "drycker")
        repo = ProductMappingRepository(db_session)

        assert await repo.update_category_for_group(user_id, "Mjölk", "mejeri") == 2

        categories = {m.original_name: m.category for m in await repo.list_for_user(user_id)}
        assert categories == {"Mjölk 1L": "mejeri", "Mjölk 3%": "mejeri", "Ost": "drycker"}

    async def test_find_ungrouped_in_category(self, db_session, user_id):
        await _mapping(db_session, user_id, "Zucchini", None, "frukt_gront")
        await _mapping(db_session, user_id, "Zuccini", "Zucchini", "frukt_gront")
        await _mapping(db_session, user_id, "Squash", "  ", "frukt_gront")
        await _mapping(db_session, user_id, "Gurka", "", "frukt_gront")
        await _mapping(db_session, user_id, "Ost", None, "mejeri")
        repo = ProductMappingRepository(db_session)

        rows = await repo.find_ungrouped_in_category(user_id, "frukt_gront")

        assert [r.original_name for r in rows] == ["Gurka", "Squash", "Zucchini"]


class TestGlobalAndOverrides:
    async def test_override_upsert(self, db_session, user_id):
        shared = await GlobalMappingRepository(db_session).create(
            GlobalProductMapping(original_name="Ost", mapped_name="Ost", category="mejeri")
        )
        repo = OverrideRepository(db_session)

        await repo.upsert(user_id, shared.id, "skafferi")
        await repo.upsert(user_id, shared.id, "other")

        (override,) = await repo.list_for_user(user_id)
        assert (override.global_mapping_id, override.override_category) == (shared.id, "other")
        assert await repo.delete_for(user_id, shared.id) is True
        assert await repo.list_for_user(user_id) == []


class TestIgnoredSuggestionRepository:
    async def test_keys_and_duplicate(self, db_session, user_id):
        repo = IgnoredSuggestionRepository(db_session)

        created = await repo.add(user_id, ["Kafe", "Kaffe", "Kafe"])

        assert created.products == ["Kafe", "Kaffe"]
        assert await repo.keys_for_user(user_id) == frozenset({"Kafe|Kaffe"})
        assert await repo.exists(user_id, "Kafe|Kaffe") is True

        with pytest.raises(IntegrityError):
            await repo.add(user_id, ["Kaffe", "Kafe"])
        await db_session.rollback()


class TestReceiptRepository:
    async def test_line_items_are_validated(self, db_session, user_id, other_user_id):
        db_session.add_all(
            [
                Receipt(
                    user_id=user_id,
                    store_name="ICA",
                    receipt_date=date(2026, 3, 1),
                    items=[{"name": "Banan", "price": "12,90"}, {"price": 5}],
                ),
                Receipt(user_id=user_id, store_name="Coop", items=None),
                Receipt(user_id=other_user_id, items=[{"name": "Ost", "price": 80}]),
            ]
        )
        await db_session.commit()

        items = await ReceiptRepository(db_session).line_items_for_user(user_id)

        assert [i.name for i in items] == ["Banan"]
