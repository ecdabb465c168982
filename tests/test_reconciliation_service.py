"""Tests for ReconciliationService against a SQLite database."""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from marketplace_admin.database import SettlementStatus, TransactionStatus
from marketplace_admin.exceptions import DataSourceError
from marketplace_admin.reconciliation import ReconciliationRequest, ReconciliationService

from conftest import REPORT_DAY


@pytest.fixture
def service(db_manager):
    return ReconciliationService.from_manager(db_manager, timeout=5)


class TestComputeReconciliation:
    """Tests for ReconciliationService.compute_reconciliation."""

    async def test_single_currency_scenario(self, service, seed, settlement_row, transaction_row):
        """Completed settlement + ORIGINAL + SERVICE_FEE on one day, filtered to GMD."""
        await seed(
            settlement_row("100.00"),
            transaction_row("ORIGINAL", "100.00"),
            transaction_row("SERVICE_FEE", "5.00"),
        )

        report = await service.compute_reconciliation(ReconciliationRequest(
            date_from=REPORT_DAY.replace(hour=0),
            date_to=REPORT_DAY.replace(hour=23, minute=59),
            currency="GMD",
        ))

        assert report.success is True
        assert len(report.data) == 1
        group = report.data[0]
        assert group.currency == "GMD"
        assert group.debits.settlement_requests == Decimal("100.00")
        assert group.debits.original == Decimal("100.00")
        assert group.credits.service_fee == Decimal("5.00")
        assert group.credits.gateway_fee == Decimal("0")
        assert group.total_debits == Decimal("200.00")
        assert group.total_credits == Decimal("5.00")
        assert group.net_position == Decimal("195.00")
        assert report.summary.total_debits == Decimal("200.00")
        assert report.summary.net_position == Decimal("195.00")

    async def test_only_completed_settlements_count(self, service, seed, settlement_row):
        await seed(
            settlement_row("100.00"),
            settlement_row("50.00", status=SettlementStatus.PENDING.value),
            settlement_row("25.00", status=SettlementStatus.FAILED.value),
        )

        report = await service.compute_reconciliation(ReconciliationRequest())

        assert report.data[0].debits.settlement_requests == Decimal("100.00")
        assert len(report.data[0].details.settlements) == 1
        assert report.pagination.total_settlements == 1

    async def test_only_successful_transactions_count(self, service, seed, transaction_row):
        await seed(
            transaction_row("ORIGINAL", "100.00"),
            transaction_row("ORIGINAL", "70.00", status=TransactionStatus.FAILED.value),
            transaction_row("FEE", "3.00", status=TransactionStatus.PENDING.value),
        )

        report = await service.compute_reconciliation(ReconciliationRequest())

        group = report.data[0]
        assert group.debits.original == Decimal("100.00")
        assert group.credits.gateway_fee == Decimal("0")
        assert report.pagination.total_transactions == 1

    async def test_orders_listed_without_affecting_totals(self, service, seed, order_row):
        await seed(order_row("250.00"), order_row("10.00", status="CANCELLED"))

        report = await service.compute_reconciliation(ReconciliationRequest())

        group = report.data[0]
        assert len(group.details.orders) == 2
        assert group.total_debits == Decimal("0")
        assert group.total_credits == Decimal("0")
        assert report.pagination.total_orders == 2

    async def test_two_currencies_without_filter(self, service, seed, settlement_row, transaction_row):
        await seed(
            settlement_row("100.00", currency="USD"),
            settlement_row("300.00", currency="GMD"),
            transaction_row("FEE", "1.50", currency="USD"),
            transaction_row("SERVICE_FEE", "12.00", currency="GMD"),
        )

        report = await service.compute_reconciliation(ReconciliationRequest())

        assert [g.currency for g in report.data] == ["GMD", "USD"]
        gmd, usd = report.data
        assert gmd.net_position == Decimal("288.00")
        assert usd.net_position == Decimal("98.50")
        assert report.summary.total_currencies == 2
        assert report.summary.currency == "GMD"
        assert report.summary.net_position == Decimal("288.00")

    async def test_currency_filter(self, service, seed, settlement_row, order_row, transaction_row):
        await seed(
            settlement_row("100.00", currency="USD"),
            settlement_row("300.00", currency="GMD"),
            order_row("20.00", currency="USD"),
            transaction_row("ORIGINAL", "9.00", currency="USD"),
        )

        report = await service.compute_reconciliation(ReconciliationRequest(currency="USD"))

        assert [g.currency for g in report.data] == ["USD"]
        assert report.pagination.total_records == 3
        assert report.summary.total_debits == Decimal("0")

    async def test_currency_filter_without_matches(self, service, seed, settlement_row):
        await seed(settlement_row("100.00"))

        report = await service.compute_reconciliation(ReconciliationRequest(currency="EUR"))

        assert report.data == []
        assert report.pagination.total_records == 0

    async def test_show_all_currency_value(self, service, seed, settlement_row):
        await seed(settlement_row("1.00", currency="GMD"), settlement_row("1.00", currency="USD"))

        report = await service.compute_reconciliation(ReconciliationRequest(currency="all"))

        assert len(report.data) == 2

    async def test_window_bounds_are_inclusive(self, service, seed, settlement_row):
        start = datetime(2024, 3, 1)
        end = datetime(2024, 3, 31, 23, 59, 59)
        await seed(
            settlement_row("1.00", created_at=start),
            settlement_row("2.00", created_at=end),
            settlement_row("4.00", created_at=start - timedelta(seconds=1)),
            settlement_row("8.00", created_at=end + timedelta(seconds=1)),
        )

        report = await service.compute_reconciliation(ReconciliationRequest(date_from=start, date_to=end))

        assert report.data[0].total_debits == Decimal("3.00")

    async def test_open_ended_window(self, service, seed, settlement_row):
        await seed(
            settlement_row("1.00", created_at=datetime(2020, 1, 1)),
            settlement_row("2.00", created_at=datetime(2030, 1, 1)),
        )

        report = await service.compute_reconciliation(
            ReconciliationRequest(date_from=datetime(2025, 1, 1))
        )

        assert report.data[0].total_debits == Decimal("2.00")

    async def test_empty_database(self, service):
        report = await service.compute_reconciliation(ReconciliationRequest())

        assert report.data == []
        assert report.pagination.total_records == 0
        assert report.pagination.total_settlements == 0
        assert report.pagination.total_orders == 0
        assert report.pagination.total_transactions == 0
        assert report.pagination.total_pages == 0
        assert report.summary.total_debits == Decimal("0")

    async def test_pages_slice_each_source_independently(self, service, seed, settlement_row, order_row):
        """Each source is sliced by the page; counts cover every matching record."""
        await seed(
            *[settlement_row("10.00", created_at=REPORT_DAY + timedelta(minutes=i)) for i in range(3)],
            *[order_row("1.00", created_at=REPORT_DAY + timedelta(minutes=i)) for i in range(2)],
        )

        first = await service.compute_reconciliation(ReconciliationRequest(page=1, limit=2))
        second = await service.compute_reconciliation(ReconciliationRequest(page=2, limit=2))

        assert len(first.data[0].details.settlements) == 2
        assert len(first.data[0].details.orders) == 2
        assert first.data[0].total_debits == Decimal("20.00")
        assert len(second.data[0].details.settlements) == 1
        assert second.data[0].details.orders == []

        assert first.pagination.total_records == 5
        assert first.pagination.total_pages == 3
        assert first.pagination.has_next_page is True
        assert second.pagination.has_prev_page is True

    async def test_details_newest_first_with_users(self, service, seed, settlement_row, user):
        older = settlement_row("1.00", created_at=REPORT_DAY, reference="STL-OLD")
        newer = settlement_row("2.00", created_at=REPORT_DAY + timedelta(hours=1), reference="STL-NEW")
        await seed(older, newer)

        report = await service.compute_reconciliation(ReconciliationRequest())

        details = report.data[0].details.settlements
        assert [s.reference for s in details] == ["STL-NEW", "STL-OLD"]
        assert details[0].user.first_name == "Awa"
        assert details[0].user.id == user.id

    async def test_same_inputs_same_output(self, service, seed, settlement_row, order_row, transaction_row):
        await seed(
            settlement_row("100.00"),
            order_row("50.00", currency="USD"),
            transaction_row("FEE", "2.00"),
        )
        request = ReconciliationRequest(currency=None)

        first = await service.compute_reconciliation(request)
        second = await service.compute_reconciliation(request)

        assert first.to_response() == second.to_response()


class TestFailureHandling:
    """A failing or slow source aborts the whole report."""

    async def test_source_failure_raises_data_source_error(self, service, seed, settlement_row):
        await seed(settlement_row("100.00"))
        failure = OperationalError("SELECT", {}, Exception("connection lost"))

        with patch.object(service, "fetch_orders", AsyncMock(side_effect=failure)):
            with pytest.raises(DataSourceError) as exc_info:
                await service.compute_reconciliation(ReconciliationRequest())

        assert exc_info.value.message == "Server error"
        assert exc_info.value.http_status == 500

    async def test_timeout_raises_data_source_error(self, db_manager):
        service = ReconciliationService.from_manager(db_manager, timeout=0.05)

        async def never_finishes(request):
            await asyncio.sleep(10)

        with patch.object(service, "fetch_transactions", never_finishes):
            with pytest.raises(DataSourceError):
                await service.compute_reconciliation(ReconciliationRequest())

    async def test_failed_fetch_cancels_the_others(self, service):
        """When one source fails, fetches still in flight are cancelled."""
        started = asyncio.Event()
        cancelled = []

        async def slow_fetch(request):
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append("transactions")
                raise

        async def failing_fetch(request):
            await started.wait()
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        with patch.object(service, "fetch_transactions", slow_fetch), \
                patch.object(service, "fetch_orders", failing_fetch):
            with pytest.raises(DataSourceError):
                await service.compute_reconciliation(ReconciliationRequest())

        assert cancelled == ["transactions"]

    async def test_fetches_run_concurrently(self, db_manager):
        """Each fetch waits until all three have started; run one by one they would time out."""
        service = ReconciliationService.from_manager(db_manager, timeout=2)
        arrived = []
        all_started = asyncio.Event()

        def waiting_fetch(name):
            async def fetch(request):
                arrived.append(name)
                if len(arrived) == 3:
                    all_started.set()
                await all_started.wait()
                return [], 0
            return fetch

        with patch.object(service, "fetch_settlements", waiting_fetch("settlements")), \
                patch.object(service, "fetch_orders", waiting_fetch("orders")), \
                patch.object(service, "fetch_transactions", waiting_fetch("transactions")):
            report = await service.compute_reconciliation(ReconciliationRequest())

        assert sorted(arrived) == ["orders", "settlements", "transactions"]
        assert report.data == []
        assert report.pagination.total_records == 0

    async def test_missing_schema_raises_data_source_error(self, empty_db_manager):
        service = ReconciliationService.from_manager(empty_db_manager, timeout=5)

        with pytest.raises(DataSourceError):
            await service.compute_reconciliation(ReconciliationRequest())


class TestReconciliationRequest:
    """Input validation happens before any fetch."""

    def test_defaults(self):
        request = ReconciliationRequest()

        assert request.page == 1
        assert request.limit == 1000
        assert request.offset == 0
        assert request.currency is None
        assert request.headline_currency == "GMD"

    def test_offset(self):
        assert ReconciliationRequest(page=3, limit=25).offset == 50

    @pytest.mark.parametrize("page,limit", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    def test_rejects_non_positive_paging(self, page, limit):
        with pytest.raises(ValidationError):
            ReconciliationRequest(page=page, limit=limit)

    def test_rejects_reversed_window(self):
        with pytest.raises(ValidationError):
            ReconciliationRequest(date_from=datetime(2024, 2, 1), date_to=datetime(2024, 1, 1))

    @pytest.mark.parametrize("value", ["", "all", "ALL", " all "])
    def test_show_all_values(self, value):
        assert ReconciliationRequest(currency=value).currency is None
