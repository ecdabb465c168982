"""Currency grouping and summary math for the cumulative entries report."""

import math
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from ..database.models import TransactionType
from .models import (
    ZERO,
    CurrencyGroup,
    SettlementRecord,
    OrderRecord,
    ExternalTransactionRecord,
    PaginationInfo,
    ReportSummary,
)

logger = logging.getLogger(__name__)


def _amount(value: Optional[Decimal]) -> Decimal:
    """Missing amounts count as zero."""
    return value if value is not None else ZERO


class CurrencyAggregator:
    """Groups settlements, orders and gateway transactions by currency code.

    Settlements debit ``settlementRequests``. Gateway transactions are
    classified by type: ORIGINAL debits ``original``, FEE credits
    ``gatewayFee`` and SERVICE_FEE credits ``serviceFee``; any other type is
    listed in the group's details without touching a bucket. Orders are
    listed in the details only and never change the totals.
    """

    def __init__(self) -> None:
        self._groups: Dict[str, CurrencyGroup] = {}

    def _group_for(self, currency: str) -> CurrencyGroup:
        # Currency codes are used verbatim, blank ones included.
        group = self._groups.get(currency)
        if group is None:
            group = CurrencyGroup(currency=currency)
            self._groups[currency] = group
        return group

    def add_settlement(self, settlement: SettlementRecord) -> None:
        group = self._group_for(settlement.currency)
        group.debits.settlement_requests += _amount(settlement.amount)
        group.details.settlements.append(settlement)

    def add_order(self, order: OrderRecord) -> None:
        group = self._group_for(order.currency_code)
        group.details.orders.append(order)

    def add_transaction(self, transaction: ExternalTransactionRecord) -> None:
        group = self._group_for(transaction.currency_code)
        amount = _amount(transaction.amount)

        if transaction.transaction_type == TransactionType.ORIGINAL.value:
            group.debits.original += amount
        elif transaction.transaction_type == TransactionType.FEE.value:
            group.credits.gateway_fee += amount
        elif transaction.transaction_type == TransactionType.SERVICE_FEE.value:
            group.credits.service_fee += amount

        group.details.external_transactions.append(transaction)

    def results(self) -> List[CurrencyGroup]:
        """Finalise totals and return the groups sorted by currency code."""
        for group in self._groups.values():
            group.total_debits = group.debits.total()
            group.total_credits = group.credits.total()
            group.net_position = group.total_debits - group.total_credits
        return sorted(self._groups.values(), key=lambda g: g.currency)

    @classmethod
    def aggregate(
        cls,
        settlements: Sequence[SettlementRecord],
        orders: Sequence[OrderRecord],
        transactions: Sequence[ExternalTransactionRecord],
    ) -> List[CurrencyGroup]:
        """Build the per-currency groups for one report.

        Args:
            settlements: Completed settlements in the window.
            orders: Orders in the window.
            transactions: Successful gateway transactions in the window.

        Returns:
            Currency groups sorted by currency code, ordinal comparison.
        """
        aggregator = cls()
        for settlement in settlements:
            aggregator.add_settlement(settlement)
        for order in orders:
            aggregator.add_order(order)

        type_counts: Dict[str, int] = {}
        for transaction in transactions:
            type_counts[transaction.transaction_type] = type_counts.get(transaction.transaction_type, 0) + 1
            aggregator.add_transaction(transaction)

        groups = aggregator.results()
        logger.debug(
            f"Aggregated {len(settlements)} settlements, {len(orders)} orders and "
            f"{len(transactions)} transactions {type_counts} into {len(groups)} currency groups"
        )
        return groups


def build_pagination(
    page: int,
    limit: int,
    total_settlements: int,
    total_orders: int,
    total_transactions: int,
) -> PaginationInfo:
    """Pagination metadata across the three sources combined."""
    total_records = total_settlements + total_orders + total_transactions
    total_pages = math.ceil(total_records / limit)
    return PaginationInfo(
        page=page,
        limit=limit,
        total_records=total_records,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
        total_settlements=total_settlements,
        total_orders=total_orders,
        total_transactions=total_transactions,
    )


def build_summary(groups: Sequence[CurrencyGroup], headline_currency: str) -> ReportSummary:
    """Headline totals of one currency; zero when that currency is absent."""
    headline = next((g for g in groups if g.currency == headline_currency), None)
    if headline is None:
        return ReportSummary(total_currencies=len(groups), currency=headline_currency)
    return ReportSummary(
        total_currencies=len(groups),
        currency=headline_currency,
        total_debits=headline.total_debits,
        total_credits=headline.total_credits,
        net_position=headline.net_position,
    )
