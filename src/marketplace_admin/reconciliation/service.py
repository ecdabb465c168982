"""Service layer for the cumulative entries report."""

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_report_timeout
from ..database import (
    DatabaseManager,
    SettlementRepository,
    OrderRepository,
    ExternalTransactionRepository,
)
from ..exceptions import DataSourceError
from .aggregator import CurrencyAggregator, build_pagination, build_summary
from .models import (
    CumulativeEntriesReport,
    ReconciliationRequest,
    SettlementRecord,
    OrderRecord,
    ExternalTransactionRecord,
)
from .report import ReportGenerator

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class ReconciliationService:
    """Computes cumulative entries reports from the three record sources."""

    def __init__(
        self,
        session_scope: SessionScope,
        timeout: Optional[float] = None,
    ):
        """Initialize the reconciliation service.

        Args:
            session_scope: Callable returning an async context manager that
                yields a fresh session. Each source is read in its own session
                so the fetches can run concurrently.
            timeout: Seconds allowed for all fetches together. Defaults to
                the REPORT_TIMEOUT_SECONDS setting.
        """
        self.session_scope = session_scope
        self.timeout = timeout if timeout is not None else get_report_timeout()

    @classmethod
    def from_manager(cls, manager: DatabaseManager, timeout: Optional[float] = None) -> "ReconciliationService":
        return cls(manager.read_session, timeout=timeout)

    async def fetch_settlements(
        self,
        request: ReconciliationRequest,
    ) -> Tuple[List[SettlementRecord], int]:
        """Fetch one page of completed settlements plus the full match count."""
        async with self.session_scope() as session:
            repo = SettlementRepository(session)
            rows = await repo.list_completed(
                start=request.date_from,
                end=request.date_to,
                currency=request.currency,
                limit=request.limit,
                offset=request.offset,
            )
            total = await repo.count_completed(
                start=request.date_from,
                end=request.date_to,
                currency=request.currency,
            )
            return [SettlementRecord.model_validate(r) for r in rows], total

    async def fetch_orders(
        self,
        request: ReconciliationRequest,
    ) -> Tuple[List[OrderRecord], int]:
        """Fetch one page of orders plus the full match count."""
        async with self.session_scope() as session:
            repo = OrderRepository(session)
            rows = await repo.list_in_window(
                start=request.date_from,
                end=request.date_to,
                currency=request.currency,
                limit=request.limit,
                offset=request.offset,
            )
            total = await repo.count_in_window(
                start=request.date_from,
                end=request.date_to,
                currency=request.currency,
            )
            return [OrderRecord.model_validate(r) for r in rows], total

    async def fetch_transactions(
        self,
        request: ReconciliationRequest,
    ) -> Tuple[List[ExternalTransactionRecord], int]:
        """Fetch one page of successful gateway transactions plus the full match count."""
        async with self.session_scope() as session:
            repo = ExternalTransactionRepository(session)
            rows = await repo.list_successful(
                start=request.date_from,
                end=request.date_to,
                currency=request.currency,
                limit=request.limit,
                offset=request.offset,
            )
            total = await repo.count_successful(
                start=request.date_from,
                end=request.date_to,
                currency=request.currency,
            )
            return [ExternalTransactionRecord.model_validate(r) for r in rows], total

    async def _fetch_all(self, request: ReconciliationRequest):
        tasks = [
            asyncio.ensure_future(self.fetch_settlements(request)),
            asyncio.ensure_future(self.fetch_orders(request)),
            asyncio.ensure_future(self.fetch_transactions(request)),
        ]
        try:
            return await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.timeout)
        except BaseException:
            # One failed fetch voids the others
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def compute_reconciliation(
        self,
        request: ReconciliationRequest,
    ) -> CumulativeEntriesReport:
        """Build the cumulative entries report for the requested window.

        Args:
            request: Validated report parameters.

        Returns:
            CumulativeEntriesReport with currency groups, pagination and
            headline summary.

        Raises:
            DataSourceError: If any source fetch fails or the timeout expires.
                No partial report is returned.
        """
        logger.info(
            f"Computing cumulative entries from {request.date_from or '-'} to "
            f"{request.date_to or '-'} currency={request.currency or 'all'} "
            f"page={request.page} limit={request.limit}"
        )

        try:
            (
                (settlements, total_settlements),
                (orders, total_orders),
                (transactions, total_transactions),
            ) = await self._fetch_all(request)
        except asyncio.TimeoutError as e:
            logger.error(f"Cumulative entries fetch timed out after {self.timeout}s")
            raise DataSourceError() from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Cumulative entries fetch failed: {e}")
            raise DataSourceError() from e

        groups = CurrencyAggregator.aggregate(settlements, orders, transactions)
        pagination = build_pagination(
            page=request.page,
            limit=request.limit,
            total_settlements=total_settlements,
            total_orders=total_orders,
            total_transactions=total_transactions,
        )
        summary = build_summary(groups, request.headline_currency)

        logger.info(
            f"Cumulative entries computed: {len(groups)} currencies, "
            f"{pagination.total_records} records across {pagination.total_pages} pages"
        )

        return CumulativeEntriesReport(data=groups, pagination=pagination, summary=summary)

    def generate_report(
        self,
        report: CumulativeEntriesReport,
        format: str = "json",
        include_details: bool = True,
    ) -> str:
        """Render a report as text.

        Args:
            report: CumulativeEntriesReport to format.
            format: Output format ('json', 'text', 'detailed_text').
            include_details: Include detail records (for JSON format).

        Returns:
            Formatted report string.
        """
        generator = ReportGenerator(report)

        if format == "json":
            return generator.to_json(include_details=include_details)
        elif format == "text":
            return generator.to_summary_text()
        elif format == "detailed_text":
            return generator.to_detailed_text()
        else:
            raise ValueError(f"Unsupported report format: {format}")
