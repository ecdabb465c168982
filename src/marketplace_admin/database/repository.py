"""Repository layer for settlement, order and gateway transaction queries."""

import logging
from datetime import datetime
from typing import Optional, List, Sequence, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import (
    Settlement,
    Order,
    ExternalTransaction,
    User,
    SettlementStatus,
    TransactionStatus,
    utcnow,
)

logger = logging.getLogger(__name__)


LIKE_ESCAPE = "\\"


def _contains_pattern(term: str) -> str:
    """LIKE pattern matching `term` literally anywhere in the value."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _window_clauses(column, start: Optional[datetime], end: Optional[datetime]) -> list:
    """Inclusive bounds on a timestamp column; an omitted bound is unbounded."""
    clauses = []
    if start is not None:
        clauses.append(column >= start)
    if end is not None:
        clauses.append(column <= end)
    return clauses


class SettlementRepository:
    """Repository for Settlement queries and status updates."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    def _completed_filter(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        currency: Optional[str],
    ) -> list:
        clauses = [Settlement.status == SettlementStatus.COMPLETED.value]
        clauses.extend(_window_clauses(Settlement.created_at, start, end))
        if currency is not None:
            clauses.append(Settlement.currency == currency)
        return clauses

    async def list_completed(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        currency: Optional[str] = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> List[Settlement]:
        """List completed settlements created inside the window, newest first.

        Args:
            start: Inclusive lower bound on creation time.
            end: Inclusive upper bound on creation time.
            currency: Restrict to one currency code.
            limit: Maximum number of results.
            offset: Offset for pagination.

        Returns:
            List of Settlement instances with their user loaded.
        """
        result = await self.session.execute(
            select(Settlement)
            .where(*self._completed_filter(start, end, currency))
            .options(selectinload(Settlement.user))
            .order_by(Settlement.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count_completed(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        currency: Optional[str] = None,
    ) -> int:
        result = await self.session.execute(
            select(func.count(Settlement.id))
            .where(*self._completed_filter(start, end, currency))
        )
        return result.scalar_one()

    def _search_filter(
        self,
        search: Optional[str],
        status: Optional[str],
        channel: Optional[str],
        currency: Optional[str],
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> list:
        clauses = []
        if search:
            pattern = _contains_pattern(search)
            clauses.append(or_(
                Settlement.reference.ilike(pattern, escape=LIKE_ESCAPE),
                User.first_name.ilike(pattern, escape=LIKE_ESCAPE),
                User.last_name.ilike(pattern, escape=LIKE_ESCAPE),
                User.phone_number.ilike(pattern, escape=LIKE_ESCAPE),
            ))
        if status:
            clauses.append(Settlement.status == status)
        if channel:
            clauses.append(Settlement.channel == channel)
        if currency:
            clauses.append(Settlement.currency == currency)
        clauses.extend(_window_clauses(Settlement.created_at, start, end))
        return clauses

    async def search(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        channel: Optional[str] = None,
        currency: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Settlement], int]:
        """Filter settlements for the admin listing.

        Returns:
            Tuple of (page of settlements newest first, total matching count).
        """
        clauses = self._search_filter(search, status, channel, currency, start, end)

        count_result = await self.session.execute(
            select(func.count(Settlement.id))
            .join(User, Settlement.user_id == User.id)
            .where(*clauses)
        )
        total = count_result.scalar_one()

        result = await self.session.execute(
            select(Settlement)
            .join(User, Settlement.user_id == User.id)
            .where(*clauses)
            .options(selectinload(Settlement.user))
            .order_by(Settlement.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    async def get_by_id(self, settlement_id: str) -> Optional[Settlement]:
        result = await self.session.execute(
            select(Settlement)
            .where(Settlement.id == settlement_id)
            .options(selectinload(Settlement.user))
        )
        return result.scalar_one_or_none()

    async def get_many(self, settlement_ids: Sequence[str]) -> List[Settlement]:
        """Load several settlements in one query, in no particular order."""
        result = await self.session.execute(
            select(Settlement)
            .where(Settlement.id.in_(list(settlement_ids)))
            .options(selectinload(Settlement.user))
        )
        return list(result.scalars().all())

    async def update_status(self, settlement: Settlement, new_status: str) -> Settlement:
        """Set a settlement's status and its processing timestamp.

        Args:
            settlement: Settlement instance to update.
            new_status: New settlement status.

        Returns:
            Updated Settlement instance.
        """
        now = utcnow()
        settlement.status = new_status
        settlement.processed_at = now if new_status == SettlementStatus.COMPLETED.value else None
        settlement.updated_at = now
        await self.session.flush()
        logger.info(f"Updated settlement {settlement.id} status to {new_status}")
        return settlement


class OrderRepository:
    """Repository for Order queries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _filter(start: Optional[datetime], end: Optional[datetime], currency: Optional[str]) -> list:
        clauses = _window_clauses(Order.created_at, start, end)
        if currency is not None:
            clauses.append(Order.currency_code == currency)
        return clauses

    async def list_in_window(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        currency: Optional[str] = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> List[Order]:
        """List orders of any status created inside the window, newest first."""
        result = await self.session.execute(
            select(Order)
            .where(*self._filter(start, end, currency))
            .options(selectinload(Order.buyer), selectinload(Order.seller))
            .order_by(Order.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count_in_window(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        currency: Optional[str] = None,
    ) -> int:
        result = await self.session.execute(
            select(func.count(Order.id)).where(*self._filter(start, end, currency))
        )
        return result.scalar_one()


class ExternalTransactionRepository:
    """Repository for gateway transaction queries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _filter(start: Optional[datetime], end: Optional[datetime], currency: Optional[str]) -> list:
        clauses = [ExternalTransaction.status == TransactionStatus.SUCCESS.value]
        clauses.extend(_window_clauses(ExternalTransaction.created_at, start, end))
        if currency is not None:
            clauses.append(ExternalTransaction.currency_code == currency)
        return clauses

    async def list_successful(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        currency: Optional[str] = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> List[ExternalTransaction]:
        """List successful gateway transactions created inside the window, newest first."""
        result = await self.session.execute(
            select(ExternalTransaction)
            .where(*self._filter(start, end, currency))
            .options(
                selectinload(ExternalTransaction.order),
                selectinload(ExternalTransaction.customer),
                selectinload(ExternalTransaction.seller),
            )
            .order_by(ExternalTransaction.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count_successful(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        currency: Optional[str] = None,
    ) -> int:
        result = await self.session.execute(
            select(func.count(ExternalTransaction.id))
            .where(*self._filter(start, end, currency))
        )
        return result.scalar_one()
