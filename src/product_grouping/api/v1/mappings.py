"""Mapping endpoints: create, delete, manual merge and assignment."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.api.deps import Caller, get_current_caller, get_db, require_category
from product_grouping.core.errors import get_error
from product_grouping.schemas.grouping import (
    BatchResult,
    GlobalMappingRef,
    MappingScope,
    UserMappingRef,
)
from product_grouping.schemas.mapping import (
    AssignToGroupRequest,
    AssignToGroupResult,
    ManualMergeRequest,
    MappingCreateRequest,
    MappingDeleteResult,
    MappingResponse,
    MergeDefaultsRequest,
    MergeDefaultsResponse,
)
from product_grouping.services.mapping_store import MappingStore
from product_grouping.services.merge import MergeOrchestrator

router = APIRouter(prefix="/mappings", tags=["mappings"])


@router.post(
    "",
    response_model=MappingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a personal mapping",
    description="Fails with 409 (MAP_001) if the product name already has a mapping.",
)
async def create_mapping(
    body: MappingCreateRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> MappingResponse:
    category = require_category(body.category, allow_none=True)
    mapping = await MappingStore(db, caller.is_admin).create_mapping(
        caller.id, body.original_name, body.mapped_name, category
    )
    return MappingResponse.model_validate(mapping)


@router.delete(
    "/{scope}/{mapping_id}",
    response_model=MappingDeleteResult,
    summary="Delete a mapping",
    description="""
    Removes a product from its group. Receipts are not touched.
    Deleting a global mapping requires administrative rights (403, MAP_003).
    Deleting a mapping that is already gone returns `deleted: false`.
    """,
)
async def delete_mapping(
    scope: MappingScope,
    mapping_id: UUID,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> MappingDeleteResult:
    ref = UserMappingRef(id=mapping_id) if scope == MappingScope.USER else GlobalMappingRef(id=mapping_id)
    deleted = await MappingStore(db, caller.is_admin).delete_mapping(caller.id, ref)
    return MappingDeleteResult(deleted=deleted)


@router.post("/manual-merge", response_model=BatchResult, summary="Merge selected products")
async def manual_merge(
    body: ManualMergeRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> BatchResult:
    """
    Put hand-picked products (personal or global rows) into one group.

    The category is optional; without one, existing categories are kept.
    """
    category = require_category(body.category, allow_none=True)
    return await MergeOrchestrator(db, caller.is_admin).manual_merge(
        caller.id, body.products, body.mapped_name, category
    )


@router.post("/merge-defaults", response_model=MergeDefaultsResponse, summary="Suggest merge name/category")
async def merge_defaults(
    body: MergeDefaultsRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> MergeDefaultsResponse:
    name, category = await MergeOrchestrator(db, caller.is_admin).suggest_merge_defaults(
        caller.id, body.products
    )
    return MergeDefaultsResponse(suggested_name=name, suggested_category=category)


@router.post("/assign", response_model=AssignToGroupResult, summary="Assign a product to a group")
async def assign_to_group(
    body: AssignToGroupRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> AssignToGroupResult:
    target = body.ref if body.ref is not None else body.original_name
    if target is None:
        error_def = get_error("VAL_001")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error_code": "VAL_001",
                "user_message": error_def["user_message"],
                "suggestion": error_def["suggestion"],
            },
        )
    outcome = await MergeOrchestrator(db, caller.is_admin).assign_to_group(
        caller.id, target, body.group_name
    )
    return AssignToGroupResult(outcome=outcome)
