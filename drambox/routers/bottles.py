"""Bottle collection and fill-level endpoints."""

import logging

from fastapi import APIRouter, status

from drambox.models import Bottle, BottleStatus, Pour
from drambox.routers._common import parse_object_id
from drambox.schemas.bottle import (
    BottleCreate,
    BottleResponse,
    FillLevelResponse,
    FillLevelUpdate,
    RecentPour,
)
from drambox.schemas.pour import PourResponse
from drambox.services import bottles as bottle_service
from drambox.services.auth import RequireAuth

logger = logging.getLogger(__name__)

router = APIRouter()


async def _with_recent_pours(bottle: Bottle) -> BottleResponse:
    response = BottleResponse.model_validate(bottle)
    pours = await bottle_service.recent_pours(bottle.id)
    response.recent_pours = [RecentPour.model_validate(p) for p in pours]
    return response


@router.get("", response_model=list[BottleResponse])
async def list_bottles(
    current_user: RequireAuth,
    status_filter: BottleStatus | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[BottleResponse]:
    """List the caller's bottles."""
    conditions = {"owner_id": current_user.id}
    if status_filter:
        conditions["status"] = status_filter

    bottles = await Bottle.find(conditions).sort(-Bottle.updated_at).skip(skip).limit(limit).to_list()
    return [BottleResponse.model_validate(b) for b in bottles]


@router.post("", response_model=BottleResponse, status_code=status.HTTP_201_CREATED)
async def create_bottle(data: BottleCreate, current_user: RequireAuth) -> BottleResponse:
    """Add an unopened bottle to the caller's collection."""
    bottle = await bottle_service.create_bottle(
        current_user.id,
        data.catalog_item_id,
        purchase_price=data.purchase_price,
        purchase_date=data.purchase_date,
        bottle_size_oz=data.bottle_size_oz,
        notes=data.notes,
    )
    return BottleResponse.model_validate(bottle)


@router.get("/{bottle_id}", response_model=BottleResponse)
async def get_bottle(bottle_id: str, current_user: RequireAuth) -> BottleResponse:
    """Get a bottle with its ledger, stats and most recent pours."""
    bottle = await bottle_service.get_owned_bottle(parse_object_id(bottle_id, "Bottle"), current_user.id)
    return await _with_recent_pours(bottle)


@router.post("/{bottle_id}/open", response_model=BottleResponse)
async def open_bottle(bottle_id: str, current_user: RequireAuth) -> BottleResponse:
    """Open an unopened bottle so pours can be recorded against it."""
    bottle = await bottle_service.open_bottle(parse_object_id(bottle_id, "Bottle"), current_user.id)
    return BottleResponse.model_validate(bottle)


@router.patch("/{bottle_id}/fill-level", response_model=FillLevelResponse)
async def adjust_fill_level(
    bottle_id: str,
    data: FillLevelUpdate,
    current_user: RequireAuth,
) -> FillLevelResponse:
    """Manually correct the fill level (evaporation, sharing, a bad estimate)."""
    bottle, previous_level = await bottle_service.set_fill_level(
        parse_object_id(bottle_id, "Bottle"),
        current_user.id,
        data.fill_level,
        data.reason,
        data.notes,
    )
    return FillLevelResponse(
        bottle=BottleResponse.model_validate(bottle),
        previous_level=previous_level,
        new_level=bottle.fill.level,
        message="Fill level adjusted",
    )


@router.post("/{bottle_id}/fill-level/recalculate", response_model=FillLevelResponse)
async def recalculate_fill_level(bottle_id: str, current_user: RequireAuth) -> FillLevelResponse:
    """Rebuild the fill level from every recorded pour, discarding manual corrections."""
    bottle, previous_level = await bottle_service.recalculate_fill_level(
        parse_object_id(bottle_id, "Bottle"), current_user.id
    )
    return FillLevelResponse(
        bottle=BottleResponse.model_validate(bottle),
        previous_level=previous_level,
        new_level=bottle.fill.level,
        message="Fill level recalculated based on all pours",
    )


@router.get("/{bottle_id}/pours", response_model=list[PourResponse])
async def list_bottle_pours(
    bottle_id: str,
    current_user: RequireAuth,
    skip: int = 0,
    limit: int = 100,
) -> list[PourResponse]:
    """List the pours of one of the caller's bottles, newest first."""
    bottle = await bottle_service.get_owned_bottle(parse_object_id(bottle_id, "Bottle"), current_user.id)
    pours = await Pour.find(Pour.bottle_id == bottle.id).sort(-Pour.date).skip(skip).limit(limit).to_list()
    return [PourResponse.model_validate(p) for p in pours]
