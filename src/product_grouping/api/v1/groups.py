"""Product group endpoints: listing, merging, renaming and categories."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.api.deps import Caller, get_current_caller, get_db, require_category
from product_grouping.schemas.grouping import BatchResult
from product_grouping.schemas.mapping import (
    GroupCategoryRequest,
    GroupCategoryResult,
    GroupListResult,
    GroupMergeRequest,
    GroupRenameRequest,
    OverrideDeleteResult,
    OverrideRequest,
    OverrideResponse,
    UngroupedListResult,
)
from product_grouping.services.mapping_store import MappingStore
from product_grouping.services.merge import MergeOrchestrator

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get(
    "",
    response_model=GroupListResult,
    summary="List product groups",
    description="""
    Groups from the caller's own mappings and the shared global mappings.
    A personal mapping hides a global one for the same product name.

    Each group carries its members, categories, where its mappings come
    from (`user`, `global` or `mixed`), purchase count and total spend.
    """,
)
async def list_groups(
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> GroupListResult:
    groups, stats = await MappingStore(db, caller.is_admin).list_groups(caller.id)
    return GroupListResult(groups=groups, stats=stats)


@router.get("/ungrouped", response_model=UngroupedListResult, summary="List ungrouped product names")
async def list_ungrouped(
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> UngroupedListResult:
    names = await MappingStore(db, caller.is_admin).unmapped_names(caller.id)
    return UngroupedListResult(names=names, count=len(names))


@router.post("/merge", response_model=BatchResult, summary="Merge groups into one")
async def merge_groups(
    body: GroupMergeRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> BatchResult:
    """Rows that fail are listed in ``failures``; the rest are merged."""
    orchestrator = MergeOrchestrator(db, caller.is_admin)
    return await orchestrator.merge_groups(caller.id, body.group_names, body.new_name)


@router.post("/rename", response_model=BatchResult, summary="Rename a group")
async def rename_group(
    body: GroupRenameRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> BatchResult:
    store = MappingStore(db, caller.is_admin)
    return await store.rename_group(caller.id, body.old_name, body.new_name, body.scope)


@router.put("/category", response_model=GroupCategoryResult, summary="Set a group's category")
async def update_group_category(
    body: GroupCategoryRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> GroupCategoryResult:
    """
    Update the category on the caller's own rows in a group.

    Global rows in the group are unaffected; use the override endpoint.
    """
    category = require_category(body.category, allow_none=True)
    count = await MappingStore(db, caller.is_admin).update_category(
        caller.id, body.mapped_name, category
    )
    return GroupCategoryResult(mapped_name=body.mapped_name, category=category, updated_count=count)


@router.put(
    "/global/{global_mapping_id}/override",
    response_model=OverrideResponse,
    summary="Override a global mapping's category for the caller",
)
async def set_override(
    global_mapping_id: UUID,
    body: OverrideRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> OverrideResponse:
    category = require_category(body.category)
    override = await MappingStore(db, caller.is_admin).set_override(
        caller.id, global_mapping_id, category
    )
    return OverrideResponse.model_validate(override)


@router.delete(
    "/global/{global_mapping_id}/override",
    response_model=OverrideDeleteResult,
    status_code=status.HTTP_200_OK,
    summary="Remove the caller's category override",
)
async def clear_override(
    global_mapping_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> OverrideDeleteResult:
    deleted = await MappingStore(db, caller.is_admin).clear_override(caller.id, global_mapping_id)
    return OverrideDeleteResult(deleted=deleted)
