"""Data diagnostics and cleanup endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.api.deps import Caller, get_current_caller, get_db, require_category
from product_grouping.schemas.diagnostics import CategoryFixRequest, CleanupResult, DiagnosticsReport
from product_grouping.schemas.grouping import BatchResult
from product_grouping.services.diagnostics import DiagnosticsService

router = APIRouter(prefix="/diagnostics", tags=["diagnostics"])


@router.get("", response_model=DiagnosticsReport, summary="Find inconsistent mapping data")
async def get_diagnostics(
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> DiagnosticsReport:
    return await DiagnosticsService(db, caller.is_admin).report(caller.id)


@router.post("/cleanup-empty", response_model=CleanupResult, summary="Delete empty-group mappings")
async def cleanup_empty(
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> CleanupResult:
    """Delete the caller's mappings with an empty group name. Receipts stay."""
    count = await DiagnosticsService(db, caller.is_admin).cleanup_degenerate_mappings(caller.id)
    return CleanupResult(deleted_count=count)


@router.post("/fix-categories", response_model=BatchResult, summary="Repair joined categories")
async def fix_categories(
    body: CategoryFixRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> BatchResult:
    for fix in body.fixes:
        if fix.category is not None:
            fix.category = require_category(fix.category)
    return await DiagnosticsService(db, caller.is_admin).fix_corrupted_categories(caller.id, body.fixes)
