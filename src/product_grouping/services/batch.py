"""Row-by-row execution of multi-row mapping writes.

Each row is its own unit of work: repositories commit per call, a failing
row is rolled back and recorded, and the rows before it stay written.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.config import settings
from product_grouping.core.errors import get_error
from product_grouping.core.exceptions import GroupingError, NotFoundError
from product_grouping.schemas.grouping import BatchResult, MappingScope, RowFailure, ScopeCounts

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


@dataclass(frozen=True)
class BatchRow:
    """One independent write: ``action`` returns CREATED, UPDATED or SKIPPED."""

    name: str
    scope: MappingScope | None
    action: Callable[[], Awaitable[str]]


def _scope_counts(result: BatchResult, scope: MappingScope | None) -> ScopeCounts | None:
    if scope is None:
        return None
    return result.by_scope.setdefault(scope.value, ScopeCounts())


async def run_batch(
    db: AsyncSession,
    operation: str,
    rows: Sequence[BatchRow],
    cancel: asyncio.Event | None = None,
) -> BatchResult:
    """Run rows sequentially, aggregating failures instead of raising.

    Args:
        db: Session the row actions write through (rolled back after a failure)
        operation: Name used in the result and in logs
        rows: Writes to perform, in order
        cancel: Checked before each row; once set, remaining rows are skipped

    Returns:
        BatchResult with per-row failures

    Raises:
        SQLAlchemyError: If every row failed on a connection-level error
    """
    result = BatchResult(operation=operation, total=len(rows))
    connection_errors: list[SQLAlchemyError] = []

    for index, row in enumerate(rows):
        if cancel is not None and cancel.is_set():
            result.cancelled = True
            result.skipped += len(rows) - index
            logger.info(
                "Batch cancelled",
                extra={"operation": operation, "remaining": len(rows) - index},
            )
            break

        counts = _scope_counts(result, row.scope)
        try:
            outcome = await row.action()
        except NotFoundError:
            # Someone else already removed it: nothing left to do.
            await db.rollback()
            result.skipped += 1
            continue
        except GroupingError as e:
            await db.rollback()
            _record_failure(result, counts, row, e.error_code)
            continue
        except SQLAlchemyError as e:
            await db.rollback()
            if isinstance(e, (OperationalError, InterfaceError)):
                connection_errors.append(e)
            _record_failure(result, counts, row, "DB_001", type(e).__name__)
            continue

        if outcome == SKIPPED:
            result.skipped += 1
            continue
        if outcome == CREATED:
            result.created += 1
        else:
            result.updated += 1
        result.succeeded += 1
        if counts is not None:
            counts.succeeded += 1

    if connection_errors and result.succeeded == 0 and len(connection_errors) == result.failed:
        logger.error(
            "Batch failed on every row",
            extra={"operation": operation, "error_type": type(connection_errors[-1]).__name__},
        )
        raise connection_errors[-1]

    logger.info(
        "Batch complete",
        extra={
            "operation": operation,
            "total": result.total,
            "succeeded": result.succeeded,
            "failed": result.failed,
            "skipped": result.skipped,
        },
    )
    return result


def _record_failure(
    result: BatchResult,
    counts: ScopeCounts | None,
    row: BatchRow,
    error_code: str,
    error_type: str | None = None,
) -> None:
    result.failed += 1
    if counts is not None:
        counts.failed += 1
    result.failures.append(
        RowFailure(
            name=row.name,
            scope=row.scope,
            error_code=error_code,
            message=get_error(error_code)["message"],
        )
    )
    extra = {"error_code": error_code, "scope": row.scope.value if row.scope else None}
    if error_type:
        extra["error_type"] = error_type
    if settings.debug:
        extra["product_name"] = row.name
    logger.warning("Batch row failed", extra=extra)
