"""Common helpers for API routers."""

import logging

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import HTTPException, status
from pydantic import ValidationError

logger = logging.getLogger(__name__)


def parse_object_id(value: str, label: str) -> PydanticObjectId:
    """Parse a path id, answering 404 for anything that is not an ObjectId."""
    try:
        return PydanticObjectId(value)
    except (InvalidId, ValidationError, TypeError) as e:
        logger.debug("Invalid %s ID format: %s - %s", label, value, e)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} with ID {value} not found",
        )
