"""Pour session endpoints."""

import logging

from fastapi import APIRouter, status

from drambox.models import PourSession
from drambox.routers._common import parse_object_id
from drambox.schemas.pour_session import PourSessionCreate, PourSessionResponse
from drambox.services import pour_sessions as session_service
from drambox.services.auth import RequireAuth

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[PourSessionResponse])
async def list_sessions(
    current_user: RequireAuth,
    skip: int = 0,
    limit: int = 50,
) -> list[PourSessionResponse]:
    """List the caller's sessions, newest first."""
    sessions = (
        await PourSession.find(PourSession.user_id == current_user.id)
        .sort(-PourSession.date)
        .skip(skip)
        .limit(limit)
        .to_list()
    )
    return [PourSessionResponse.model_validate(s) for s in sessions]


@router.post("", response_model=PourSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(data: PourSessionCreate, current_user: RequireAuth) -> PourSessionResponse:
    """Start a session explicitly, ahead of its first pour."""
    session = await session_service.create_session(current_user.id, **data.model_dump())
    return PourSessionResponse.model_validate(session)


@router.get("/current", response_model=PourSessionResponse | None)
async def get_current_session(current_user: RequireAuth) -> PourSessionResponse | None:
    """The caller's latest session started today, if any."""
    session = await session_service.current_session(current_user.id)
    return PourSessionResponse.model_validate(session) if session else None


@router.get("/{session_id}", response_model=PourSessionResponse)
async def get_session(session_id: str, current_user: RequireAuth) -> PourSessionResponse:
    """Get a session with freshly recomputed totals."""
    session = await session_service.get_owned_session(
        parse_object_id(session_id, "Pour session"), current_user.id
    )
    session = await session_service.recalculate(session.id) or session
    return PourSessionResponse.model_validate(session)
