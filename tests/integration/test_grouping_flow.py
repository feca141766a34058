"""End-to-end grouping flows against the database."""

from unittest.mock import AsyncMock

from sqlalchemy import select

from product_grouping.models import GlobalProductMapping, ProductMapping, Receipt, UserGlobalOverride
from product_grouping.schemas.diagnostics import CategoryFix
from product_grouping.schemas.grouping import Cluster, GlobalMappingRef, MappingScope
from product_grouping.services.diagnostics import DiagnosticsService
from product_grouping.services.mapping_store import MappingStore
from product_grouping.services.merge import MergeOrchestrator
from product_grouping.services.suggestions import SuggestionService


def _receipt(user_id, *items):
    return Receipt(
        user_id=user_id,
        store_name="ICA Maxi",
        items=[{"name": name, "price": price, "category": category} for name, price, category in items],
    )


async def test_accepted_cluster_leaves_unmapped_names(db_session, user_id):
    db_session.add(
        _receipt(
            user_id,
            ("Filmjölk 3%", "19,90", "mejeri"),
            ("Filmjölk 3 procent", "21,50", "mejeri"),
            ("Filmjölk", "18,00", None),
            ("Äpple", "4,50", "frukt_gront"),
        )
    )
    await db_session.commit()
    store = MappingStore(db_session)
    cluster = Cluster(
        members=["Filmjölk 3%", "Filmjölk 3 procent", "Filmjölk"],
        suggested_name="Filmjölk",
        score=0.9,
    )

    result = await MergeOrchestrator(db_session).accept_cluster(user_id, cluster)

    assert result.created == 3
    rows = (await db_session.execute(select(ProductMapping))).scalars().all()
    assert len(rows) == 3
    assert {r.mapped_name for r in rows} == {"Filmjölk"}
    assert {r.category for r in rows} == {"mejeri"}
    assert await store.unmapped_names(user_id) == ["Äpple"]


async def test_accepting_again_updates_instead_of_duplicating(db_session, user_id):
    db_session.add(ProductMapping(user_id=user_id, original_name="Kaffe", mapped_name=None))
    await db_session.commit()
    cluster = Cluster(members=["Kaffe", "Kafe"], suggested_name="Kafe", score=0.7)

    result = await MergeOrchestrator(db_session).accept_cluster(user_id, cluster, final_name="Kaffe")

    assert (result.created, result.updated) == (1, 1)
    rows = (await db_session.execute(select(ProductMapping))).scalars().all()
    assert sorted(r.original_name for r in rows) == ["Kafe", "Kaffe"]


async def test_ignored_cluster_is_not_suggested_again(db_session, user_id):
    db_session.add(
        _receipt(
            user_id,
            ("Coca Cola", 20, "drycker"),
            ("Coca Cola Zero", 20, "drycker"),
            ("Gurka", 12, "frukt_gront"),
        )
    )
    await db_session.commit()
    suggestions = SuggestionService(db_session)

    first = await suggestions.local_suggestions(user_id)
    assert [c.members for c in first] == [["Coca Cola", "Coca Cola Zero"]]

    orchestrator = MergeOrchestrator(db_session)
    assert await orchestrator.ignore_cluster(user_id, first[0]) is True
    assert await orchestrator.ignore_cluster(user_id, first[0]) is False

    assert await suggestions.local_suggestions(user_id) == []


async def test_resolved_names_are_not_suggested(db_session, user_id):
    db_session.add(_receipt(user_id, ("Coca Cola", 20, None), ("Coca Cola Zero", 20, None)))
    db_session.add(GlobalProductMapping(original_name="Coca Cola Zero", mapped_name="Cola"))
    await db_session.commit()

    assert await SuggestionService(db_session).local_suggestions(user_id) == []


async def test_user_mapping_takes_precedence_over_global(db_session, user_id):
    shared = GlobalProductMapping(original_name="Ost", mapped_name="Ost", category="mejeri")
    db_session.add(shared)
    db_session.add(GlobalProductMapping(original_name="Smör", mapped_name="Smör", category="mejeri"))
    db_session.add(ProductMapping(user_id=user_id, original_name="Ost", mapped_name="Hushållsost"))
    await db_session.commit()

    views = {v.original_name: v for v in await MappingStore(db_session).view(user_id)}

    assert views["Ost"].scope == MappingScope.USER
    assert views["Ost"].mapped_name == "Hushållsost"
    assert views["Smör"].scope == MappingScope.GLOBAL


async def test_override_changes_only_this_users_view(db_session, user_id, other_user_id):
    shared = GlobalProductMapping(original_name="Ost", mapped_name="Ost", category="mejeri")
    db_session.add(shared)
    await db_session.commit()

    await MappingStore(db_session).set_override(user_id, shared.id, "skafferi")

    (mine,) = await MappingStore(db_session).view(user_id)
    (theirs,) = await MappingStore(db_session).view(other_user_id)
    assert mine.category == "skafferi"
    assert theirs.category == "mejeri"
    await db_session.refresh(shared)
    assert shared.category == "mejeri"
    overrides = (await db_session.execute(select(UserGlobalOverride))).scalars().all()
    assert len(overrides) == 1


async def test_rename_user_scope_leaves_global_rows(db_session, user_id):
    db_session.add_all(
        [
            ProductMapping(user_id=user_id, original_name="Mjölk 1L", mapped_name="Mjölk"),
            ProductMapping(user_id=user_id, original_name="Mjölk 3%", mapped_name="Mjölk"),
            GlobalProductMapping(original_name="MJÖLK", mapped_name="Mjölk"),
        ]
    )
    await db_session.commit()

    result = await MappingStore(db_session).rename_group(
        user_id, "Mjölk", "Mellanmjölk", scope=MappingScope.USER
    )

    assert result.succeeded == 2
    shared = (await db_session.execute(select(GlobalProductMapping))).scalar_one()
    assert shared.mapped_name == "Mjölk"


async def test_admin_merge_reaches_global_rows(db_session, user_id):
    db_session.add_all(
        [
            ProductMapping(user_id=user_id, original_name="Mjölk 1L", mapped_name="Mjölk"),
            GlobalProductMapping(original_name="Milk", mapped_name="Milk"),
        ]
    )
    await db_session.commit()

    result = await MergeOrchestrator(db_session, is_admin=True).merge_groups(
        user_id, ["Mjölk", "Milk"], "Mjölk"
    )

    assert result.succeeded == 2
    assert result.by_scope["global"].succeeded == 1
    groups, stats = await MappingStore(db_session).list_groups(user_id)
    assert [g.name for g in groups] == ["Mjölk"]
    assert groups[0].source == "mixed"


async def test_ai_suggestions_are_grounded_in_candidates(db_session, user_id):
    db_session.add_all(
        [
            ProductMapping(user_id=user_id, original_name="Zucchini", category="frukt_gront"),
            ProductMapping(user_id=user_id, original_name="Zuccini", category="frukt_gront"),
            ProductMapping(user_id=user_id, original_name="Never bought", category="frukt_gront"),
            _receipt(user_id, ("Zucchini", 10, None), ("Zucchini", 10, None), ("Zuccini", 9, None)),
        ]
    )
    await db_session.commit()
    ai_client = AsyncMock()
    ai_client.suggest_groups.return_value = [
        Cluster(members=["Zucchini", "Zuccini", "Invented"], suggested_name="Zucchini", score=0.85, source="ai"),
        Cluster(members=["Zuccini", "Invented"], suggested_name="Zuccini", score=0.5, source="ai"),
    ]
    service = SuggestionService(db_session, ai_client=ai_client)

    candidates = await service.ungrouped_candidates(user_id, "frukt_gront")
    clusters = await service.ai_suggestions(user_id, "frukt_gront")

    assert [(c.name, c.occurrences) for c in candidates] == [("Zucchini", 2), ("Zuccini", 1)]
    assert [c.members for c in clusters] == [["Zucchini", "Zuccini"]]
    assert clusters[0].source == "ai"


async def test_diagnostics_cleanup_and_category_fix(db_session, user_id, other_user_id):
    db_session.add_all(
        [
            ProductMapping(user_id=user_id, original_name="Ost", mapped_name=""),
            ProductMapping(user_id=user_id, original_name="Mjölk", mapped_name="Mjölk", category="Mejeri, Drycker"),
            ProductMapping(user_id=other_user_id, original_name="Ost", mapped_name=" "),
            GlobalProductMapping(original_name="Juice", mapped_name="Juice", category="Drycker, Frukt"),
            _receipt(user_id, ("Ost", 80, "mejeri")),
        ]
    )
    await db_session.commit()
    service = DiagnosticsService(db_session)

    report = await service.report(user_id)
    assert [d.original_name for d in report.degenerate_mappings] == ["Ost"]
    proposals = {c.original_name: c.proposed_category for c in report.corrupted_categories}
    assert proposals == {"Mjölk": "mejeri", "Juice": "drycker"}

    fixes = [CategoryFix(ref=c.ref, category=c.proposed_category) for c in report.corrupted_categories]
    result = await service.fix_corrupted_categories(user_id, fixes)
    assert result.succeeded == 1
    assert result.failures[0].error_code == "MAP_003"
    assert isinstance(report.corrupted_categories[1].ref, GlobalMappingRef)

    assert await service.cleanup_degenerate_mappings(user_id) == 1
    receipts = (await db_session.execute(select(Receipt))).scalars().all()
    assert len(receipts) == 1
    remaining = (await db_session.execute(select(ProductMapping))).scalars().all()
    assert sorted((r.original_name, r.user_id == user_id) for r in remaining) == [
        ("Mjölk", True),
        ("Ost", False),
    ]


async def test_blank_group_names_are_ai_candidates(db_session, user_id):
    db_session.add_all(
        [
            ProductMapping(user_id=user_id, original_name="Zucchini", mapped_name=None, category="frukt_gront"),
            ProductMapping(user_id=user_id, original_name="Zuccini", mapped_name="  ", category="frukt_gront"),
            ProductMapping(user_id=user_id, original_name="Squash", mapped_name="", category="frukt_gront"),
            GlobalProductMapping(original_name="Squash", mapped_name="Zucchini"),
            _receipt(user_id, ("Zucchini", 10, None), ("Zuccini", 9, None), ("Squash", 12, None)),
        ]
    )
    await db_session.commit()
    store = MappingStore(db_session)

    candidates = await SuggestionService(db_session).ungrouped_candidates(user_id, "frukt_gront")

    assert sorted(c.name for c in candidates) == ["Zuccini", "Zucchini"]
    assert sorted(await store.unmapped_names(user_id)) == ["Zuccini", "Zucchini"]
    groups, _ = await store.list_groups(user_id)
    assert [(g.name, g.members) for g in groups] == [("Zucchini", ["Squash"])]
