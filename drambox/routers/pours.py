"""Pour endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Response, status

from drambox.models import Pour
from drambox.routers._common import parse_object_id
from drambox.schemas.bottle import BottleResponse
from drambox.schemas.pour import (
    PourCreate,
    PourDeleteResponse,
    PourRecordResponse,
    PourResponse,
)
from drambox.schemas.pour_session import PourSessionResponse
from drambox.services.auth import RequireAuth
from drambox.services.pour_deletion import delete_pour
from drambox.services.pours import get_owned_pour, record_pour

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[PourResponse])
async def list_pours(
    current_user: RequireAuth,
    bottle_id: str | None = None,
    session_id: str | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[PourResponse]:
    """List the caller's pours with optional filtering."""
    conditions: dict = {"user_id": current_user.id}
    if bottle_id:
        conditions["bottle_id"] = parse_object_id(bottle_id, "Bottle")
    if session_id:
        conditions["session_id"] = parse_object_id(session_id, "Pour session")
    if since or until:
        conditions["date"] = {}
        if since:
            conditions["date"]["$gte"] = since
        if until:
            conditions["date"]["$lte"] = until

    pours = await Pour.find(conditions).sort(-Pour.date).skip(skip).limit(limit).to_list()
    return [PourResponse.model_validate(p) for p in pours]


@router.post("", response_model=PourRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_pour(
    data: PourCreate,
    current_user: RequireAuth,
    response: Response,
) -> PourRecordResponse:
    """Record a pour from one of the caller's opened bottles.

    Resubmitting with the same ``client_request_id`` returns the original
    pour with status 200 instead of recording it twice.
    """
    result = await record_pour(current_user.id, data)
    if result.replayed:
        response.status_code = status.HTTP_200_OK

    return PourRecordResponse(
        pour=PourResponse.model_validate(result.pour),
        bottle=BottleResponse.model_validate(result.bottle),
        session=PourSessionResponse.model_validate(result.session) if result.session else None,
        replayed=result.replayed,
    )


@router.get("/{pour_id}", response_model=PourResponse)
async def get_pour(pour_id: str, current_user: RequireAuth) -> PourResponse:
    """Get a single pour by ID."""
    pour = await get_owned_pour(parse_object_id(pour_id, "Pour"), current_user.id)
    return PourResponse.model_validate(pour)


@router.delete("/{pour_id}", response_model=PourDeleteResponse)
async def remove_pour(pour_id: str, current_user: RequireAuth) -> PourDeleteResponse:
    """Delete a pour and give its volume back to the bottle."""
    result = await delete_pour(parse_object_id(pour_id, "Pour"), current_user.id)
    bottle = result.bottle
    return PourDeleteResponse(
        deleted_pour_id=str(result.pour_id),
        bottle_id=str(bottle.id) if bottle else "",
        fill_level=bottle.fill.level if bottle else 0.0,
        bottle_status=bottle.status.value if bottle else "",
        session=PourSessionResponse.model_validate(result.session) if result.session else None,
    )
