"""Diagnostics request/response schemas."""

from pydantic import BaseModel, Field

from product_grouping.schemas.grouping import MappingRef, MappingView


class CorruptedCategory(BaseModel):
    """A row whose category field holds several categories."""

    ref: MappingRef
    original_name: str
    category: str
    proposed_category: str | None = Field(
        None, description="First listed category, if it is a known category"
    )


class CategoryFix(BaseModel):
    ref: MappingRef
    category: str | None = Field(None, description="Category key to store on the row")


class CategoryFixRequest(BaseModel):
    fixes: list[CategoryFix] = Field(..., min_length=1)


class DiagnosticsReport(BaseModel):
    degenerate_mappings: list[MappingView] = Field(default_factory=list)
    corrupted_categories: list[CorruptedCategory] = Field(default_factory=list)
    ignored_suggestions: int = 0


class CleanupResult(BaseModel):
    deleted_count: int
