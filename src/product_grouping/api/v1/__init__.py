"""API version 1 routes."""

from fastapi import APIRouter

from product_grouping.api.v1 import diagnostics, groups, mappings, suggestions

router = APIRouter(prefix="/api/v1")

# Include routers
router.include_router(groups.router)
router.include_router(mappings.router)
router.include_router(suggestions.router)
router.include_router(diagnostics.router)
