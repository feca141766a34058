"""Request/response schemas for groups, mappings and suggestions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from product_grouping.schemas.grouping import (
    Cluster,
    ClusterDecision,
    GroupingStats,
    MappingRef,
    MappingScope,
    ProductGroup,
)


class MappingCreateRequest(BaseModel):
    original_name: str = Field(..., min_length=1, max_length=255)
    mapped_name: str = Field(..., min_length=1, max_length=255)
    category: str | None = Field(None, description="Category key")


class MappingResponse(BaseModel):
    """A user mapping row."""

    id: UUID
    original_name: str
    mapped_name: str | None
    category: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MappingDeleteResult(BaseModel):
    deleted: bool


class ManualMergeRequest(BaseModel):
    products: list[MappingRef] = Field(..., min_length=2)
    mapped_name: str = Field(..., min_length=1, max_length=255)
    category: str | None = None


class AssignToGroupRequest(BaseModel):
    """Assign a raw name (``original_name``) or an existing row (``ref``)."""

    group_name: str = Field(..., min_length=1, max_length=255)
    original_name: str | None = None
    ref: MappingRef | None = None


class AssignToGroupResult(BaseModel):
    outcome: str


class MergeDefaultsRequest(BaseModel):
    products: list[MappingRef] = Field(..., min_length=1)


class MergeDefaultsResponse(BaseModel):
    suggested_name: str | None
    suggested_category: str | None


class GroupMergeRequest(BaseModel):
    group_names: list[str] = Field(..., min_length=2)
    new_name: str = Field(..., min_length=1, max_length=255)


class GroupRenameRequest(BaseModel):
    old_name: str = Field(..., min_length=1)
    new_name: str = Field(..., min_length=1, max_length=255)
    scope: MappingScope | None = Field(None, description="user, global, or both when omitted")


class GroupCategoryRequest(BaseModel):
    mapped_name: str = Field(..., min_length=1)
    category: str | None = None


class GroupCategoryResult(BaseModel):
    mapped_name: str
    category: str | None
    updated_count: int


class OverrideRequest(BaseModel):
    category: str


class OverrideResponse(BaseModel):
    global_mapping_id: UUID
    override_category: str

    model_config = ConfigDict(from_attributes=True)


class OverrideDeleteResult(BaseModel):
    deleted: bool


class GroupListResult(BaseModel):
    groups: list[ProductGroup]
    stats: GroupingStats


class UngroupedListResult(BaseModel):
    names: list[str]
    count: int


class SuggestionListResult(BaseModel):
    clusters: list[Cluster]
    count: int


class AISuggestionRequest(BaseModel):
    category: str


class AcceptRequest(BaseModel):
    decisions: list[ClusterDecision] = Field(..., min_length=1)


class IgnoreRequest(BaseModel):
    cluster: Cluster


class IgnoreResult(BaseModel):
    key: str
    created: bool
