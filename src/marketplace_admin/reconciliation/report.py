"""Report rendering for cumulative entries results."""

import json
from typing import List

from .models import CumulativeEntriesReport, CurrencyGroup


class ReportGenerator:
    """Generator for cumulative entries reports in various formats."""

    def __init__(self, report: CumulativeEntriesReport):
        """Initialize the report generator.

        Args:
            report: The report to generate output from.
        """
        self.report = report

    def to_json(self, include_details: bool = True, indent: int = 2) -> str:
        """Generate JSON representation of the report.

        Args:
            include_details: If True, include all detail records. If False,
                each currency group carries only its figures.
            indent: JSON indentation level.

        Returns:
            JSON string with camelCase keys; amounts are decimal strings.
        """
        data = self.report.to_response()
        if not include_details:
            for group in data["data"]:
                group.pop("details", None)
        return json.dumps(data, indent=indent)

    @staticmethod
    def _group_lines(group: CurrencyGroup) -> List[str]:
        return [
            f"Currency: {group.currency or '(blank)'}",
            "  Debits:",
            f"    Settlement Requests: {group.debits.settlement_requests}",
            f"    Original Payments:   {group.debits.original}",
            "  Credits:",
            f"    Service Fees:        {group.credits.service_fee}",
            f"    Gateway Fees:        {group.credits.gateway_fee}",
            f"  Total Debits:  {group.total_debits}",
            f"  Total Credits: {group.total_credits}",
            f"  Net Position:  {group.net_position}",
        ]

    def to_summary_text(self) -> str:
        """Generate a human-readable text summary of the report.

        Returns:
            Formatted text with pagination counts and per-currency figures.
        """
        pagination = self.report.pagination
        summary = self.report.summary

        lines = [
            "=" * 60,
            "CUMULATIVE ENTRIES REPORT",
            "=" * 60,
            f"Page: {pagination.page} of {pagination.total_pages} (limit {pagination.limit})",
            "",
            "Records:",
            f"  Settlements: {pagination.total_settlements}",
            f"  Orders: {pagination.total_orders}",
            f"  Transactions: {pagination.total_transactions}",
            f"  Total: {pagination.total_records}",
            "",
            f"Headline ({summary.currency}):",
            f"  Total Debits: {summary.total_debits}",
            f"  Total Credits: {summary.total_credits}",
            f"  Net Position: {summary.net_position}",
            "",
            f"Currencies: {summary.total_currencies}",
        ]

        for group in self.report.data:
            lines.append("-" * 40)
            lines.extend(self._group_lines(group))

        lines.append("=" * 60)

        return "\n".join(lines)

    def to_detailed_text(self) -> str:
        """Generate a detailed human-readable text report.

        Returns:
            Formatted text with summary and one line per detail record.
        """
        lines = [self.to_summary_text(), ""]

        for group in self.report.data:
            details = group.details
            if not (details.settlements or details.orders or details.external_transactions):
                continue

            lines.extend([
                f"DETAILS {group.currency or '(blank)'}",
                "-" * 40,
            ])

            if details.settlements:
                lines.append(f"\nSettlements ({len(details.settlements)}):")
                for s in details.settlements:
                    lines.append(
                        f"  {s.id}: {s.amount} {s.currency}, "
                        f"Channel: {s.channel}, Reference: {s.reference or '-'}"
                    )

            if details.orders:
                lines.append(f"\nOrders ({len(details.orders)}):")
                for o in details.orders:
                    lines.append(
                        f"  {o.order_number or o.id}: {o.total_amount} {o.currency_code}, "
                        f"Status: {o.status}, Payment: {o.payment_status}"
                    )

            if details.external_transactions:
                lines.append(f"\nGateway Transactions ({len(details.external_transactions)}):")
                for t in details.external_transactions:
                    lines.append(
                        f"  {t.id}: {t.transaction_type} {t.amount} {t.currency_code}, "
                        f"Provider: {t.provider or '-'}"
                    )

            lines.append("")

        return "\n".join(lines)
