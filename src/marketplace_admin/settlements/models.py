"""Request and response models for settlement administration."""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator

from ..database.models import SettlementStatus
from ..reconciliation.models import CamelModel, SettlementRecord, MAX_PAGE, MAX_LIMIT

# Listing filter value meaning "no filter".
ALL = "all"


def _blank_or_all_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or value.strip() == "" or value.strip().lower() == ALL:
        return None
    return value


class SettlementFilters(BaseModel):
    """Filters for the admin settlement listing."""
    search: Optional[str] = None
    status: Optional[str] = None
    channel: Optional[str] = None
    currency: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    limit: int = Field(default=10, gt=0, le=MAX_LIMIT)

    @field_validator("search", "status", "channel", "currency")
    @classmethod
    def normalize_all(cls, v: Optional[str]) -> Optional[str]:
        return _blank_or_all_to_none(v)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ListPagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class SettlementPage(CamelModel):
    success: bool = True
    data: List[SettlementRecord] = Field(default_factory=list)
    pagination: ListPagination


class StatusUpdateBody(BaseModel):
    """Body of a single settlement status change."""
    status: Optional[str] = None


class BulkStatusUpdateBody(BaseModel):
    """Body of a bulk settlement status change."""
    ids: Optional[List[str]] = None
    status: Optional[str] = None


def parse_status(value: Optional[str]) -> Optional[SettlementStatus]:
    """Map a raw status string to SettlementStatus, or None if unknown or blank."""
    if not value:
        return None
    try:
        return SettlementStatus(value.strip().upper())
    except ValueError:
        return None
