#!/usr/bin/env python3
"""Command-line interface for the cumulative entries report.

Usage:
    python -m marketplace_admin.reconciliation.cli cumulative --from 2024-01-01 --to 2024-01-31
    python -m marketplace_admin.reconciliation.cli cumulative --currency GMD --format text --output report.txt
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from ..config import get_report_default_limit
from ..database import DatabaseManager
from ..dates import parse_optional_bound
from ..exceptions import InvalidQueryError, DataSourceError
from .models import ReconciliationRequest
from .service import ReconciliationService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_ARGUMENTS = 1
EXIT_DATA_SOURCE_FAILURE = 2


async def run_report_async(
    request: ReconciliationRequest,
    output_file: Optional[str] = None,
    output_format: str = "json",
    include_details: bool = True,
    database_url: Optional[str] = None,
) -> int:
    """Compute and write one report.

    Args:
        request: Validated report parameters.
        output_file: Optional output file path; stdout when omitted.
        output_format: 'json', 'text' or 'detailed_text'.
        include_details: Include detail records in JSON output.
        database_url: Overrides DATABASE_URL.

    Returns:
        Exit code.
    """
    manager = DatabaseManager(database_url=database_url)
    await manager.initialize(create_tables=False)

    try:
        service = ReconciliationService.from_manager(manager)
        try:
            report = await service.compute_reconciliation(request)
        except DataSourceError:
            logger.error("Cumulative entries report failed: data source unavailable")
            return EXIT_DATA_SOURCE_FAILURE

        output = service.generate_report(
            report=report,
            format=output_format,
            include_details=include_details,
        )

        if output_file:
            try:
                with open(output_file, "w") as f:
                    f.write(output)
            except OSError as e:
                logger.error(f"Cannot write report to {output_file}: {e}")
                return EXIT_INVALID_ARGUMENTS
            logger.info(f"Report written to {output_file}")
        else:
            print(output)

        return EXIT_OK

    finally:
        await manager.shutdown()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="marketplace-reconcile",
        description="Settlement reconciliation reports grouped by currency.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    cumulative_parser = subparsers.add_parser(
        "cumulative",
        help="Compute the cumulative entries report",
    )
    cumulative_parser.add_argument(
        "--from", "-s",
        dest="date_from",
        help="Start date/time (YYYY-MM-DD or ISO-8601); unbounded when omitted",
    )
    cumulative_parser.add_argument(
        "--to", "-e",
        dest="date_to",
        help="End date/time (YYYY-MM-DD covers the whole day); unbounded when omitted",
    )
    cumulative_parser.add_argument(
        "--currency", "-c",
        help="Only report this currency code",
    )
    cumulative_parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Page of the detail lists (default: 1)",
    )
    cumulative_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help=f"Detail records per source per page (default: {get_report_default_limit()})",
    )
    cumulative_parser.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout)",
    )
    cumulative_parser.add_argument(
        "--format", "-f",
        choices=["json", "text", "detailed_text"],
        default="json",
        help="Output format (default: json)",
    )
    cumulative_parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Leave detail records out of JSON output",
    )
    cumulative_parser.add_argument(
        "--database-url",
        help="Database URL (default: DATABASE_URL environment variable)",
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).

    Returns:
        Exit code.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return EXIT_INVALID_ARGUMENTS

    if parsed_args.command == "cumulative":
        try:
            request = ReconciliationRequest(
                date_from=parse_optional_bound(parsed_args.date_from),
                date_to=parse_optional_bound(parsed_args.date_to, end_of_day=True),
                currency=parsed_args.currency,
                page=parsed_args.page,
                limit=parsed_args.limit if parsed_args.limit is not None else get_report_default_limit(),
            )
        except (InvalidQueryError, ValueError) as e:
            logger.error(str(e))
            return EXIT_INVALID_ARGUMENTS

        return asyncio.run(run_report_async(
            request=request,
            output_file=parsed_args.output,
            output_format=parsed_args.format,
            include_details=not parsed_args.summary_only,
            database_url=parsed_args.database_url,
        ))

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
