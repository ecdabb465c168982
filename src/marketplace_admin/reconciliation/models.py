"""Models for the multi-currency settlement reconciliation report."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..config import get_report_default_limit, get_headline_currency

ZERO = Decimal("0.00")

# Currency filter values that mean "every currency".
SHOW_ALL_CURRENCIES = frozenset(["", "all"])

# Paging bounds; keep (page - 1) * limit well inside a 64-bit offset.
MAX_PAGE = 1_000_000
MAX_LIMIT = 10_000


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys, as the admin frontend expects."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserSummary(CamelModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None


class OrderReference(CamelModel):
    id: str
    order_number: str


class SettlementRecord(CamelModel):
    """A completed payout request included in the report."""
    id: str
    user_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: str
    channel: Optional[str] = None
    status: Optional[str] = None
    reference: Optional[str] = None
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


class OrderRecord(CamelModel):
    """A commerce order shown as context; it never moves the totals."""
    id: str
    order_number: Optional[str] = None
    user_id: Optional[str] = None
    seller_id: Optional[str] = None
    total_amount: Optional[Decimal] = None
    currency_code: str
    status: Optional[str] = None
    payment_status: Optional[str] = None
    created_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    buyer: Optional[UserSummary] = None
    seller: Optional[UserSummary] = None


class ExternalTransactionRecord(CamelModel):
    """A successful gateway transaction included in the report."""
    id: str
    amount: Optional[Decimal] = None
    currency_code: str
    transaction_type: str
    service_type: Optional[str] = None
    provider: Optional[str] = None
    status: Optional[str] = None
    order_id: Optional[str] = None
    ride_request_id: Optional[str] = None
    customer_id: Optional[str] = None
    seller_id: Optional[str] = None
    created_at: Optional[datetime] = None
    order: Optional[OrderReference] = None
    customer: Optional[UserSummary] = None
    seller: Optional[UserSummary] = None


class DebitBreakdown(CamelModel):
    settlement_requests: Decimal = ZERO
    original: Decimal = ZERO

    def total(self) -> Decimal:
        return sum((getattr(self, name) for name in type(self).model_fields), ZERO)


class CreditBreakdown(CamelModel):
    service_fee: Decimal = ZERO
    gateway_fee: Decimal = ZERO

    def total(self) -> Decimal:
        return sum((getattr(self, name) for name in type(self).model_fields), ZERO)


class GroupDetails(CamelModel):
    settlements: List[SettlementRecord] = Field(default_factory=list)
    orders: List[OrderRecord] = Field(default_factory=list)
    external_transactions: List[ExternalTransactionRecord] = Field(default_factory=list)


class CurrencyGroup(CamelModel):
    """Reconciliation figures for one currency code."""
    currency: str
    debits: DebitBreakdown = Field(default_factory=DebitBreakdown)
    credits: CreditBreakdown = Field(default_factory=CreditBreakdown)
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO
    net_position: Decimal = ZERO
    details: GroupDetails = Field(default_factory=GroupDetails)


class PaginationInfo(CamelModel):
    page: int
    limit: int
    total_records: int = 0
    total_pages: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False
    total_settlements: int = 0
    total_orders: int = 0
    total_transactions: int = 0


class ReportSummary(CamelModel):
    """Headline figures taken from a single currency group."""
    total_currencies: int = 0
    currency: str
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO
    net_position: Decimal = ZERO


class CumulativeEntriesReport(CamelModel):
    """Complete cumulative entries report."""
    success: bool = True
    data: List[CurrencyGroup] = Field(default_factory=list)
    pagination: PaginationInfo
    summary: ReportSummary

    def to_response(self) -> dict:
        """JSON-ready representation with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ReconciliationRequest(BaseModel):
    """Parameters of one cumulative entries report."""
    date_from: Optional[datetime] = Field(None, description="Inclusive start of the window")
    date_to: Optional[datetime] = Field(None, description="Inclusive end of the window")
    currency: Optional[str] = Field(None, description="Restrict the report to one currency code")
    page: int = Field(default=1, ge=1, le=MAX_PAGE, description="1-based page of the detail lists")
    limit: int = Field(default_factory=get_report_default_limit, gt=0, le=MAX_LIMIT, description="Detail records per source per page")
    headline_currency: str = Field(default_factory=get_headline_currency)

    @field_validator("currency")
    @classmethod
    def normalize_show_all(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.strip().lower() in SHOW_ALL_CURRENCIES:
            return None
        return v

    @model_validator(mode="after")
    def check_window(self) -> "ReconciliationRequest":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("dateFrom must not be after dateTo")
        return self

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
