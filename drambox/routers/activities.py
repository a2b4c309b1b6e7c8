"""Activity timeline endpoints."""

from fastapi import APIRouter

from drambox.models import Activity
from drambox.schemas.activity import ActivityResponse
from drambox.services.auth import RequireAuth

router = APIRouter()


@router.get("", response_model=list[ActivityResponse])
async def list_activities(
    current_user: RequireAuth,
    skip: int = 0,
    limit: int = 50,
) -> list[ActivityResponse]:
    """The caller's own activity, newest first."""
    activities = (
        await Activity.find(Activity.user_id == current_user.id)
        .sort(-Activity.created_at)
        .skip(skip)
        .limit(limit)
        .to_list()
    )
    return [ActivityResponse.model_validate(a) for a in activities]
