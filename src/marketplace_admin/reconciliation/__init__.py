"""Multi-currency settlement reconciliation.

Reads completed settlements, orders and successful gateway transactions for
a time window and reports, per currency code:
- debits (settlement payouts, original customer charges)
- credits (gateway fees, platform service fees)
- the net position and the supporting records of the requested page
"""

from .models import (
    UserSummary,
    OrderReference,
    SettlementRecord,
    OrderRecord,
    ExternalTransactionRecord,
    DebitBreakdown,
    CreditBreakdown,
    GroupDetails,
    CurrencyGroup,
    PaginationInfo,
    ReportSummary,
    CumulativeEntriesReport,
    ReconciliationRequest,
)
from .aggregator import CurrencyAggregator, build_pagination, build_summary
from .service import ReconciliationService
from .report import ReportGenerator

__all__ = [
    # Models
    "UserSummary",
    "OrderReference",
    "SettlementRecord",
    "OrderRecord",
    "ExternalTransactionRecord",
    "DebitBreakdown",
    "CreditBreakdown",
    "GroupDetails",
    "CurrencyGroup",
    "PaginationInfo",
    "ReportSummary",
    "CumulativeEntriesReport",
    "ReconciliationRequest",
    # Core Components
    "CurrencyAggregator",
    "build_pagination",
    "build_summary",
    "ReconciliationService",
    "ReportGenerator",
]
