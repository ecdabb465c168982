"""API endpoint for the cumulative entries report."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError

from ..auth import verify_admin_token, limiter
from ..config import get_report_default_limit, get_report_rate_limit
from ..database import DatabaseManager, get_db_manager
from ..dates import parse_optional_bound
from ..exceptions import InvalidQueryError
from .models import ReconciliationRequest
from .service import ReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settlements", tags=["reconciliation"])


def _first_error_message(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{field}: {message}" if field else message


def build_request(
    date_from: Optional[str],
    date_to: Optional[str],
    currency: Optional[str],
    page: int,
    limit: Optional[int],
) -> ReconciliationRequest:
    """Turn raw query parameters into a validated report request.

    Raises:
        InvalidQueryError: For malformed dates, a reversed window, or a
            non-positive page or limit.
    """
    start = parse_optional_bound(date_from)
    end = parse_optional_bound(date_to, end_of_day=True)
    try:
        return ReconciliationRequest(
            date_from=start,
            date_to=end,
            currency=currency,
            page=page,
            limit=limit if limit is not None else get_report_default_limit(),
        )
    except ValidationError as e:
        raise InvalidQueryError(_first_error_message(e)) from None


@router.get("/cumulative-entries")
@limiter.limit(get_report_rate_limit())
async def get_cumulative_entries(
    request: Request,
    date_from: Optional[str] = Query(None, alias="dateFrom", description="YYYY-MM-DD or ISO-8601"),
    date_to: Optional[str] = Query(None, alias="dateTo", description="YYYY-MM-DD or ISO-8601"),
    currency: Optional[str] = Query(None, description="Currency code; omit or 'all' for every currency"),
    page: int = Query(1, description="1-based page of the detail lists"),
    limit: Optional[int] = Query(None, description="Detail records per source per page"),
    db_manager: DatabaseManager = Depends(get_db_manager),
    token: str = Depends(verify_admin_token),
):
    """
    Cumulative financial entries grouped by currency.

    Returns, per currency, settlement and original-payment debits, gateway
    and service fee credits, the net position and the supporting records of
    the requested page, plus pagination across all three sources and the
    headline currency's totals.
    """
    report_request = build_request(date_from, date_to, currency, page, limit)

    service = ReconciliationService.from_manager(db_manager)
    report = await service.compute_reconciliation(report_request)
    return report.to_response()

