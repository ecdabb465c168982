"""Service layer for settlement administration."""

import math
import logging
from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Settlement, SettlementRepository, SettlementStatus
from ..exceptions import NotFoundError, StatusTransitionError
from ..reconciliation.models import SettlementRecord
from .models import SettlementFilters, SettlementPage, ListPagination

logger = logging.getLogger(__name__)


class SettlementAdminService:
    """Listing and status management of payout requests."""

    def __init__(self, session: AsyncSession):
        """Initialize the service with a database session.

        Args:
            session: AsyncSession instance; the caller owns commit/rollback.
        """
        self.session = session
        self.settlement_repo = SettlementRepository(session)

    async def list_settlements(self, filters: SettlementFilters) -> SettlementPage:
        """List settlements matching the filters, newest first."""
        rows, total = await self.settlement_repo.search(
            search=filters.search,
            status=filters.status,
            channel=filters.channel,
            currency=filters.currency,
            start=filters.date_from,
            end=filters.date_to,
            limit=filters.limit,
            offset=filters.offset,
        )
        total_pages = math.ceil(total / filters.limit)
        return SettlementPage(
            data=[SettlementRecord.model_validate(r) for r in rows],
            pagination=ListPagination(
                page=filters.page,
                limit=filters.limit,
                total=total,
                total_pages=total_pages,
                has_next=filters.page < total_pages,
                has_prev=filters.page > 1,
            ),
        )

    async def get_settlement(self, settlement_id: str) -> SettlementRecord:
        """Get one settlement.

        Raises:
            NotFoundError: If no settlement has this id.
        """
        settlement = await self.settlement_repo.get_by_id(settlement_id)
        if settlement is None:
            raise NotFoundError("Settlement")
        return SettlementRecord.model_validate(settlement)

    @staticmethod
    def _check_transition(settlement: Settlement, new_status: SettlementStatus) -> None:
        # COMPLETED is terminal; re-completing only refreshes the timestamps.
        if (
            settlement.status == SettlementStatus.COMPLETED.value
            and new_status != SettlementStatus.COMPLETED
        ):
            raise StatusTransitionError(
                f"Settlement {settlement.id} is already COMPLETED and cannot move to {new_status.value}"
            )

    async def update_status(self, settlement_id: str, new_status: SettlementStatus) -> SettlementRecord:
        """Change one settlement's status.

        Raises:
            NotFoundError: If no settlement has this id.
            StatusTransitionError: If the settlement is COMPLETED and the new
                status is anything else.
        """
        settlement = await self.settlement_repo.get_by_id(settlement_id)
        if settlement is None:
            raise NotFoundError("Settlement")

        self._check_transition(settlement, new_status)
        previous = settlement.status
        await self.settlement_repo.update_status(settlement, new_status.value)
        logger.info(f"Settlement {settlement_id} moved from {previous} to {new_status.value}")
        return SettlementRecord.model_validate(settlement)

    async def bulk_update_status(
        self,
        settlement_ids: Sequence[str],
        new_status: SettlementStatus,
    ) -> List[SettlementRecord]:
        """Change the status of several settlements at once.

        Every id is checked before anything is written; the caller's
        transaction is expected to roll back if this raises.

        Raises:
            NotFoundError: If any id is unknown.
            StatusTransitionError: If any settlement may not take the new status.
        """
        unique_ids = list(dict.fromkeys(settlement_ids))
        settlements = await self.settlement_repo.get_many(unique_ids)
        by_id = {s.id: s for s in settlements}

        missing = [i for i in unique_ids if i not in by_id]
        if missing:
            logger.warning(f"Bulk status update references unknown settlements: {missing}")
            raise NotFoundError("Settlement")

        for settlement in settlements:
            self._check_transition(settlement, new_status)

        updated = []
        for settlement_id in unique_ids:
            settlement = by_id[settlement_id]
            await self.settlement_repo.update_status(settlement, new_status.value)
            updated.append(SettlementRecord.model_validate(settlement))

        logger.info(f"Bulk updated {len(updated)} settlements to {new_status.value}")
        return updated
