"""Schemas shared by the grouping algorithms and services.

These are the data contracts of the engine: candidate clusters, mapping
references, derived groups and batch results.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

KEY_SEPARATOR = "|"


class MappingScope(str, Enum):
    """Which table a mapping row lives in."""

    USER = "user"
    GLOBAL = "global"


class UserMappingRef(BaseModel):
    """Reference to a row in product_mappings."""

    scope: Literal["user"] = "user"
    id: UUID

    model_config = ConfigDict(frozen=True)


class GlobalMappingRef(BaseModel):
    """Reference to a row in global_product_mappings."""

    scope: Literal["global"] = "global"
    id: UUID

    model_config = ConfigDict(frozen=True)


MappingRef = Annotated[Union[UserMappingRef, GlobalMappingRef], Field(discriminator="scope")]


def suggestion_key(members: list[str] | tuple[str, ...] | set[str] | frozenset[str]) -> str:
    """Order-independent key of a member set: sorted, de-duplicated, "|"-joined."""
    return KEY_SEPARATOR.join(sorted(set(members)))


class Cluster(BaseModel):
    """A candidate grouping proposal (not yet applied)."""

    members: list[str] = Field(..., description="Raw product names in the cluster")
    suggested_name: str = Field(..., description="Proposed group name")
    score: float = Field(..., description="Confidence-like score in [0, 1]")
    source: str = Field(default="similarity", description="'similarity' or 'ai'")
    reasoning: str | None = Field(None, description="Explanation from the AI source")

    @property
    def key(self) -> str:
        return suggestion_key(self.members)


class ClusterDecision(BaseModel):
    """A user's decision on one suggested cluster."""

    cluster: Cluster
    final_name: str | None = None
    category: str | None = None
    target_existing_group: str | None = None
    excluded_members: list[str] = Field(default_factory=list)


class ProductCandidate(BaseModel):
    """An ungrouped product name with its number of receipt occurrences."""

    name: str
    occurrences: int = 0


class CategoryStatus(BaseModel):
    """Category agreement across a set of products."""

    common: str | None = None
    distinct: list[str] = Field(default_factory=list)
    mixed: bool = False


class MappingView(BaseModel):
    """A mapping row as seen by one user (override applied to global rows)."""

    id: UUID
    scope: MappingScope
    original_name: str
    mapped_name: str | None = None
    category: str | None = Field(None, description="Effective category")
    declared_category: str | None = Field(None, description="Category stored on the row")
    has_override: bool = False

    @property
    def ref(self) -> UserMappingRef | GlobalMappingRef:
        if self.scope == MappingScope.USER:
            return UserMappingRef(id=self.id)
        return GlobalMappingRef(id=self.id)

    @property
    def is_grouped(self) -> bool:
        return bool(self.mapped_name and self.mapped_name.strip())


class ProductGroup(BaseModel):
    """All mappings sharing one canonical name, for one user's view."""

    name: str
    members: list[str] = Field(default_factory=list)
    refs: list[MappingRef] = Field(default_factory=list)
    declared_categories: list[str] = Field(default_factory=list)
    observed_categories: list[str] = Field(default_factory=list)
    category_status: CategoryStatus = Field(default_factory=CategoryStatus)
    source: Literal["user", "global", "mixed"] = "user"
    purchase_count: int = 0
    total_spend: Decimal = Decimal("0")


class GroupingStats(BaseModel):
    """Counters shown above the product management lists."""

    total_products: int = 0
    ungrouped: int = 0
    ungrouped_percentage: int = 0
    total_groups: int = 0
    global_groups: int = 0
    personal_groups: int = 0


class RowFailure(BaseModel):
    """A single row that could not be written."""

    name: str
    scope: MappingScope | None = None
    error_code: str
    message: str


class ScopeCounts(BaseModel):
    succeeded: int = 0
    failed: int = 0


class BatchResult(BaseModel):
    """Outcome of a multi-row operation.

    Rows are independent: a failure is recorded here instead of aborting
    the batch, so callers can show "7 of 9 applied, 2 failed".
    """

    operation: str
    total: int = 0
    created: int = 0
    updated: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    failures: list[RowFailure] = Field(default_factory=list)
    by_scope: dict[str, ScopeCounts] = Field(default_factory=dict)

    @property
    def is_partial(self) -> bool:
        """True for a PartialBatchFailure: some rows applied, some failed."""
        return self.succeeded > 0 and self.failed > 0

    @property
    def ok(self) -> bool:
        return self.failed == 0 and not self.cancelled
