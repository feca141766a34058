"""Pure grouping algorithms: similarity, clustering, filtering and views."""
from product_grouping.grouping.categories import (
    CATEGORIES,
    category_key,
    effective_category,
    group_category_status,
    resolve_effective_category,
)
from product_grouping.grouping.clustering import DEFAULT_THRESHOLD, build_clusters, order_names
from product_grouping.grouping.filtering import filter_suggestions
from product_grouping.grouping.similarity import similarity
from product_grouping.grouping.views import (
    build_product_groups,
    count_occurrences,
    get_unmapped_names,
    grouping_stats,
    resolve_view,
    suggest_merge_defaults,
)

__all__ = [
    "CATEGORIES",
    "DEFAULT_THRESHOLD",
    "build_clusters",
    "build_product_groups",
    "category_key",
    "count_occurrences",
    "effective_category",
    "filter_suggestions",
    "get_unmapped_names",
    "group_category_status",
    "grouping_stats",
    "order_names",
    "resolve_effective_category",
    "resolve_view",
    "similarity",
    "suggest_merge_defaults",
]
