"""
Category endpoints - batch create, list, update, delete. All require authentication.
"""

from typing import Any

from fastapi import APIRouter, Body, status
from fastapi.responses import JSONResponse

from app.core.dependencies import CurrentUserId
from app.db.repositories.category_repository import CategoryRepository
from app.db.session import DbSession, SessionFactory
from app.schemas.category import CategoryBatchResponse, CategoryResponse, CategoryUpdate
from app.services.category_service import CategoryIngestor, CategoryService

router = APIRouter()


@router.post("", response_model=CategoryBatchResponse, status_code=status.HTTP_201_CREATED)
async def create_categories(session_factory: SessionFactory, user_id: CurrentUserId, body: Any = Body(None)):
    """Batch create. Body is an array of descriptors (or {"categories": [...]}).
    201 if at least one was created, 400 if none were."""
    descriptors = body.get("categories") if isinstance(body, dict) else body
    result = await CategoryIngestor(session_factory).ingest(descriptors)

    failed = result.failed
    if not result.created:
        payload = CategoryBatchResponse(message="No categories were created.", failed=failed)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=payload.model_dump(mode="json", exclude_none=True),
        )
    return CategoryBatchResponse(
        message=f"{len(result.created)} categories created successfully.",
        created=[CategoryResponse.model_validate(c) for c in result.created],
        failed=failed,
    )


@router.get("", response_model=list[CategoryResponse])
async def list_categories(session: DbSession, user_id: CurrentUserId):
    return await CategoryService(CategoryRepository(session)).list_categories()


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(session: DbSession, category_id: int, data: CategoryUpdate, user_id: CurrentUserId):
    """Update supplied fields. A slug used by another category is rejected with 400."""
    return await CategoryService(CategoryRepository(session)).update(category_id, data)


@router.delete("/{category_id}")
async def delete_category(session: DbSession, category_id: int, user_id: CurrentUserId):
    await CategoryService(CategoryRepository(session)).delete(category_id)
    return {"message": "Category deleted successfully"}
