"""Database models."""
from product_grouping.models.product_mapping import ProductMapping
from product_grouping.models.global_product_mapping import GlobalProductMapping
from product_grouping.models.user_global_override import UserGlobalOverride
from product_grouping.models.ignored_suggestion import IgnoredSuggestion
from product_grouping.models.receipt import Receipt

__all__ = [
    "ProductMapping",
    "GlobalProductMapping",
    "UserGlobalOverride",
    "IgnoredSuggestion",
    "Receipt",
]
