"""Settlement (payout request) administration."""

from .models import (
    SettlementFilters,
    SettlementPage,
    StatusUpdateBody,
    BulkStatusUpdateBody,
    parse_status,
)
from .service import SettlementAdminService

__all__ = [
    "SettlementFilters",
    "SettlementPage",
    "StatusUpdateBody",
    "BulkStatusUpdateBody",
    "parse_status",
    "SettlementAdminService",
]
