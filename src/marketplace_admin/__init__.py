# marketplace_admin package
__version__ = "0.1.0"

from .database import (
    Settlement,
    Order,
    ExternalTransaction,
    SettlementStatus,
    TransactionType,
    TransactionStatus,
    DatabaseManager,
)
from .exceptions import (
    AdminError,
    InvalidQueryError,
    NotFoundError,
    StatusTransitionError,
    DataSourceError,
)

# Reconciliation exports
from .reconciliation import (
    ReconciliationService,
    ReconciliationRequest,
    CumulativeEntriesReport,
    CurrencyGroup,
    CurrencyAggregator,
    ReportGenerator,
)
from .settlements import SettlementAdminService
