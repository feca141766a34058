"""Merge suggestion endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.api.deps import Caller, get_current_caller, get_db, require_category
from product_grouping.schemas.grouping import BatchResult
from product_grouping.schemas.mapping import (
    AcceptRequest,
    AISuggestionRequest,
    IgnoreRequest,
    IgnoreResult,
    SuggestionListResult,
)
from product_grouping.services.merge import MergeOrchestrator
from product_grouping.services.suggestions import SuggestionService

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.get(
    "",
    response_model=SuggestionListResult,
    summary="Similarity-based merge suggestions",
    description="""
    Clusters of near-duplicate product names that are not grouped yet.
    Dismissed clusters and clusters that would change nothing are left out.
    """,
)
async def list_suggestions(
    threshold: Annotated[
        float | None, Query(ge=0, le=1, description="Similarity threshold (default 0.6)")
    ] = None,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> SuggestionListResult:
    clusters = await SuggestionService(db).local_suggestions(caller.id, threshold)
    return SuggestionListResult(clusters=clusters, count=len(clusters))


@router.post("/ai", response_model=SuggestionListResult, summary="AI merge suggestions for a category")
async def ai_suggestions(
    body: AISuggestionRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> SuggestionListResult:
    category = require_category(body.category)
    clusters = await SuggestionService(db).ai_suggestions(caller.id, category)
    return SuggestionListResult(clusters=clusters, count=len(clusters))


@router.post("/accept", response_model=list[BatchResult], summary="Accept suggested clusters")
async def accept_suggestions(
    body: AcceptRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> list[BatchResult]:
    """
    Apply each decision independently. A cluster with mixed categories and
    no chosen category is reported as failed (MAP_002) without affecting
    the others.
    """
    for decision in body.decisions:
        decision.category = require_category(decision.category, allow_none=True)
    return await MergeOrchestrator(db, caller.is_admin).accept_clusters(caller.id, body.decisions)


@router.post("/ignore", response_model=IgnoreResult, summary="Dismiss a suggested cluster")
async def ignore_suggestion(
    body: IgnoreRequest,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
) -> IgnoreResult:
    created = await MergeOrchestrator(db, caller.is_admin).ignore_cluster(caller.id, body.cluster)
    return IgnoreResult(key=body.cluster.key, created=created)
