"""Tests for the reconciliation command-line interface."""

import asyncio
import json
from decimal import Decimal

import pytest

from marketplace_admin.database import (
    DatabaseManager,
    Settlement,
    ExternalTransaction,
    User,
)
from marketplace_admin.reconciliation.cli import (
    main,
    create_parser,
    EXIT_OK,
    EXIT_INVALID_ARGUMENTS,
    EXIT_DATA_SOURCE_FAILURE,
)

from conftest import REPORT_DAY


@pytest.fixture
def database_url(tmp_path):
    """SQLite file seeded with one GMD settlement and two gateway transactions."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"

    async def _prepare():
        manager = DatabaseManager(database_url=url)
        await manager.initialize()
        try:
            async with manager.session() as session:
                user = User(first_name="Awa", last_name="Jallow", phone_number="+2207001234")
                session.add(user)
                await session.flush()
                session.add_all([
                    Settlement(user_id=user.id, amount=Decimal("100.00"), currency="GMD",
                               status="COMPLETED", created_at=REPORT_DAY),
                    ExternalTransaction(amount=Decimal("100.00"), currency_code="GMD",
                                        transaction_type="ORIGINAL", status="SUCCESS",
                                        created_at=REPORT_DAY),
                    ExternalTransaction(amount=Decimal("5.00"), currency_code="GMD",
                                        transaction_type="SERVICE_FEE", status="SUCCESS",
                                        created_at=REPORT_DAY),
                ])
        finally:
            await manager.shutdown()

    asyncio.run(_prepare())
    return url


class TestParser:

    def test_cumulative_arguments(self):
        args = create_parser().parse_args([
            "cumulative", "--from", "2024-03-01", "--to", "2024-03-31",
            "-c", "GMD", "--page", "2", "--limit", "50", "-f", "text", "--summary-only",
        ])

        assert args.command == "cumulative"
        assert args.date_from == "2024-03-01"
        assert args.date_to == "2024-03-31"
        assert args.currency == "GMD"
        assert args.page == 2
        assert args.limit == 50
        assert args.format == "text"
        assert args.summary_only is True

    def test_defaults(self):
        args = create_parser().parse_args(["cumulative"])

        assert args.date_from is None
        assert args.page == 1
        assert args.limit is None
        assert args.format == "json"


class TestMain:

    def test_json_report_to_stdout(self, database_url, capsys):
        code = main([
            "cumulative", "--from", "2024-03-10", "--to", "2024-03-10",
            "--currency", "GMD", "--database-url", database_url,
        ])

        assert code == EXIT_OK
        report = json.loads(capsys.readouterr().out)
        assert report["success"] is True
        group = report["data"][0]
        assert Decimal(group["totalDebits"]) == Decimal("200.00")
        assert Decimal(group["totalCredits"]) == Decimal("5.00")
        assert Decimal(group["netPosition"]) == Decimal("195.00")
        assert "details" in group

    def test_summary_only_omits_details(self, database_url, capsys):
        code = main(["cumulative", "--summary-only", "--database-url", database_url])

        assert code == EXIT_OK
        report = json.loads(capsys.readouterr().out)
        assert "details" not in report["data"][0]

    def test_text_report_to_file(self, database_url, tmp_path):
        output = tmp_path / "report.txt"

        code = main([
            "cumulative", "--format", "text", "--output", str(output),
            "--database-url", database_url,
        ])

        assert code == EXIT_OK
        text = output.read_text()
        assert "CUMULATIVE ENTRIES REPORT" in text
        assert "Currency: GMD" in text
        assert "Net Position:  195.00" in text

    def test_unwritable_output(self, database_url, tmp_path):
        output = tmp_path / "missing-dir" / "report.json"

        code = main(["cumulative", "--output", str(output), "--database-url", database_url])

        assert code == EXIT_INVALID_ARGUMENTS
        assert not output.exists()

    def test_no_command(self):
        assert main([]) == EXIT_INVALID_ARGUMENTS

    @pytest.mark.parametrize("argv", [
        ["cumulative", "--from", "yesterday"],
        ["cumulative", "--from", "2024-03-10", "--to", "2024-03-01"],
        ["cumulative", "--page", "0"],
        ["cumulative", "--limit", "0"],
        ["cumulative", "--limit", "100000"],
        ["cumulative", "--page", "10000000000"],
    ])
    def test_invalid_arguments(self, argv):
        assert main(argv) == EXIT_INVALID_ARGUMENTS

    def test_data_source_failure(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'no_schema.db'}"

        assert main(["cumulative", "--database-url", url]) == EXIT_DATA_SOURCE_FAILURE
