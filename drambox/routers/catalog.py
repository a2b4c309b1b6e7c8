"""Catalog item endpoints."""

import logging
import re

from fastapi import APIRouter, HTTPException, status

from drambox.models import CatalogItem
from drambox.routers._common import parse_object_id
from drambox.schemas.catalog import CatalogItemCreate, CatalogItemResponse
from drambox.services.auth import RequireAuth

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[CatalogItemResponse])
async def list_catalog_items(
    current_user: RequireAuth,
    q: str | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[CatalogItemResponse]:
    """List catalog items, optionally filtered by a name prefix."""
    conditions = {}
    if q:
        conditions["name"] = {"$regex": f"^{re.escape(q)}", "$options": "i"}

    items = await CatalogItem.find(conditions).sort(+CatalogItem.name).skip(skip).limit(limit).to_list()
    return [CatalogItemResponse.model_validate(item) for item in items]


@router.post("", response_model=CatalogItemResponse, status_code=status.HTTP_201_CREATED)
async def create_catalog_item(
    data: CatalogItemCreate,
    current_user: RequireAuth,
) -> CatalogItemResponse:
    """Add a product to the shared catalog."""
    item = CatalogItem(**data.model_dump())
    await item.insert()
    logger.info("Catalog item created: id=%s name=%s by user=%s", item.id, item.name, current_user.id)
    return CatalogItemResponse.model_validate(item)


@router.get("/{item_id}", response_model=CatalogItemResponse)
async def get_catalog_item(item_id: str, current_user: RequireAuth) -> CatalogItemResponse:
    """Get a single catalog item by ID."""
    item = await CatalogItem.get(parse_object_id(item_id, "Catalog item"))
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Catalog item with ID {item_id} not found",
        )
    return CatalogItemResponse.model_validate(item)
