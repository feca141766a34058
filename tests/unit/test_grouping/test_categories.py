from types import SimpleNamespace

from product_grouping.grouping.categories import (
    category_key,
    effective_category,
    group_category_status,
    is_corrupted_category,
    most_common_category,
    propose_category_fix,
    resolve_effective_category,
)


class TestGroupCategoryStatus:
    def test_single_category_with_nulls(self) -> None:
        status = group_category_status(["mejeri", "mejeri", None])

        assert status.common == "mejeri"
        assert status.distinct == ["mejeri"]
        assert status.mixed is False

    def test_mixed_categories(self) -> None:
        status = group_category_status(["mejeri", "drycker"])

        assert status.common is None
        assert status.distinct == ["mejeri", "drycker"]
        assert status.mixed is True

    def test_no_categories(self) -> None:
        status = group_category_status([None, "", "  "])

        assert status.common is None
        assert status.distinct == []
        assert status.mixed is False


class TestEffectiveCategory:
    def test_override_wins(self) -> None:
        product = SimpleNamespace(category="skafferi")
        mapping = SimpleNamespace(category="mejeri")
        override = SimpleNamespace(override_category="drycker")

        assert effective_category(product, mapping, override) == "drycker"

    def test_mapping_beats_line_item(self) -> None:
        product = SimpleNamespace(category="skafferi")
        mapping = SimpleNamespace(category="mejeri")

        assert effective_category(product, mapping) == "mejeri"

    def test_falls_back_to_line_item(self) -> None:
        product = SimpleNamespace(category="skafferi")
        mapping = SimpleNamespace(category=None)

        assert effective_category(product, mapping) == "skafferi"
        assert effective_category() is None

    def test_resolve_effective_category_for_global(self) -> None:
        global_mapping = SimpleNamespace(category="mejeri")

        assert resolve_effective_category(global_mapping) == "mejeri"
        assert (
            resolve_effective_category(global_mapping, SimpleNamespace(override_category="other"))
            == "other"
        )


def test_category_key_accepts_keys_and_labels() -> None:
    assert category_key("mejeri") == "mejeri"
    assert category_key("Frukt & grönt") == "frukt_gront"
    assert category_key("  ÖVRIGT ") == "other"
    assert category_key("Elektronik") is None
    assert category_key(None) is None


def test_corrupted_category_fix() -> None:
    assert is_corrupted_category("Mejeri, Drycker") is True
    assert is_corrupted_category("mejeri") is False
    assert propose_category_fix("Mejeri, Drycker") == "mejeri"
    assert propose_category_fix("Elektronik, Mejeri") is None


def test_most_common_category() -> None:
    assert most_common_category(["mejeri", None, "drycker", "drycker"]) == "drycker"
    assert most_common_category([None]) is None
