"""API endpoints for settlement administration."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import verify_admin_token
from ..database import get_db
from ..dates import parse_optional_bound
from ..exceptions import InvalidQueryError
from .models import (
    SettlementFilters,
    StatusUpdateBody,
    BulkStatusUpdateBody,
    parse_status,
)
from .service import SettlementAdminService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/settlements",
    tags=["settlements"],
    dependencies=[Depends(verify_admin_token)],
)


def _require_status(raw: Optional[str]):
    if not raw:
        raise InvalidQueryError("Status is required")
    status = parse_status(raw)
    if status is None:
        raise InvalidQueryError(f"Unknown settlement status: {raw}")
    return status


@router.get("")
async def list_settlements(
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    status: Optional[str] = Query("all"),
    type: Optional[str] = Query("all", description="Channel: RIDES, ECOMMERCE or all"),
    currency: Optional[str] = Query("all"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    db: AsyncSession = Depends(get_db),
):
    """List settlements with filtering and pagination."""
    try:
        filters = SettlementFilters(
            search=search,
            status=status,
            channel=type,
            currency=currency,
            date_from=parse_optional_bound(date_from),
            date_to=parse_optional_bound(date_to, end_of_day=True),
            page=page,
            limit=limit,
        )
    except ValidationError as e:
        raise InvalidQueryError(str(e.errors()[0].get("msg", "Invalid query"))) from None

    result = await SettlementAdminService(db).list_settlements(filters)
    return result.model_dump(mode="json", by_alias=True)


@router.put("/bulk-update-status")
async def bulk_update_status(
    body: BulkStatusUpdateBody,
    db: AsyncSession = Depends(get_db),
):
    """Update the status of several settlements in one transaction."""
    if not body.ids:
        raise InvalidQueryError("Settlement IDs array is required")
    new_status = _require_status(body.status)

    updated = await SettlementAdminService(db).bulk_update_status(body.ids, new_status)
    return {
        "success": True,
        "data": [s.model_dump(mode="json", by_alias=True) for s in updated],
        "message": f"Successfully updated {len(updated)} settlement(s) to {new_status.value}",
    }


@router.get("/{settlement_id}")
async def get_settlement(
    settlement_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a single settlement with its user."""
    settlement = await SettlementAdminService(db).get_settlement(settlement_id)
    return {"success": True, "data": settlement.model_dump(mode="json", by_alias=True)}


@router.put("/{settlement_id}/status")
async def update_settlement_status(
    settlement_id: str,
    body: StatusUpdateBody,
    db: AsyncSession = Depends(get_db),
):
    """Update a settlement's status."""
    new_status = _require_status(body.status)

    settlement = await SettlementAdminService(db).update_status(settlement_id, new_status)
    return {
        "success": True,
        "data": settlement.model_dump(mode="json", by_alias=True),
        "message": "Settlement status updated successfully",
    }
