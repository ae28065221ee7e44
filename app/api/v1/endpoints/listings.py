"""
Listing endpoints - search/filter, detail, owner-gated create/update/delete.
Design: Thin controller; the query engine and listing service hold the rules.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, File, Form, Query, UploadFile, status

from app.config import get_settings
from app.core.dependencies import CurrentUserId, Indexer, SearchIndex, Storage
from app.db.repositories.listing_repository import ListingRepository
from app.db.session import DbSession
from app.schemas.common import validate_or_raise
from app.schemas.listing import (
    ListingEnvelope,
    ListingListEnvelope,
    ListingQuery,
    ListingResponse,
    MessageEnvelope,
)
from app.services.listing_query import ListingQueryEngine, QueryResult
from app.services.listing_service import ListingForm, ListingService

router = APIRouter()
settings = get_settings()

OptionalText = Annotated[str | None, Form()]


def _list_envelope(result: QueryResult) -> ListingListEnvelope:
    return ListingListEnvelope(
        count=result.count,
        data=[ListingResponse.model_validate(l) for l in result.items],
    )


@router.get("", response_model=ListingListEnvelope)
async def list_listings(
    session: DbSession,
    search_index: SearchIndex,
    search: str | None = None,
    category: str | None = None,
    subcategory: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    price_order: Annotated[str | None, Query(alias="priceOrder")] = None,
    date_order: Annotated[str | None, Query(alias="dateOrder")] = None,
    lat: str | None = None,
    lng: str | None = None,
    radius: str | None = None,
):
    """Search (title/description/location), filter, geo radius (km), and sort. No pagination."""
    params = validate_or_raise(
        ListingQuery,
        {
            "search": search,
            "category": category,
            "subcategory": subcategory,
            "sort_by": sort_by,
            "price_order": price_order,
            "date_order": date_order,
            "lat": lat,
            "lng": lng,
            "radius": radius,
        },
    )
    engine = ListingQueryEngine(ListingRepository(session), search_index)
    return _list_envelope(await engine.query(params))


# Declared before /{listing_id} so "my" is not taken for an id
@router.get("/my", response_model=ListingListEnvelope)
async def my_listings(session: DbSession, search_index: SearchIndex, user_id: CurrentUserId):
    """Authenticated user's own listings, newest first."""
    engine = ListingQueryEngine(ListingRepository(session), search_index)
    return _list_envelope(await engine.list_for_owner(user_id))


@router.get("/{listing_id}", response_model=ListingEnvelope)
async def get_listing(session: DbSession, search_index: SearchIndex, listing_id: str):
    engine = ListingQueryEngine(ListingRepository(session), search_index)
    listing = await engine.get(listing_id)
    return ListingEnvelope(data=ListingResponse.model_validate(listing))


@router.post("", response_model=ListingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_listing(
    session: DbSession,
    indexer: Indexer,
    storage: Storage,
    user_id: CurrentUserId,
    title: OptionalText = None,
    description: OptionalText = None,
    price: OptionalText = None,
    quantity: OptionalText = None,
    category: OptionalText = None,
    subcategory: OptionalText = None,
    location: OptionalText = None,
    lat: OptionalText = None,
    lng: OptionalText = None,
    main_image: Annotated[UploadFile | None, File(alias="mainImage")] = None,
    additional_images: Annotated[list[UploadFile] | None, File(alias="additionalImages")] = None,
):
    """Create a listing from multipart form data. Owner is taken from the token."""
    form = ListingForm(
        title=title,
        description=description,
        price=price,
        quantity=quantity,
        category=category,
        subcategory=subcategory,
        location=location,
        lat=lat,
        lng=lng,
    )
    svc = ListingService(ListingRepository(session), indexer, storage, settings.listing_placeholder_image)
    listing = await svc.create(user_id, form, main_image, additional_images)
    return ListingEnvelope(data=ListingResponse.model_validate(listing))


@router.put("/{listing_id}", response_model=ListingEnvelope)
async def update_listing(
    session: DbSession,
    indexer: Indexer,
    storage: Storage,
    user_id: CurrentUserId,
    listing_id: str,
    patch: Annotated[Any, Body()] = None,
):
    """Partial update by the owner. Body is validated only after the ownership check."""
    svc = ListingService(ListingRepository(session), indexer, storage, settings.listing_placeholder_image)
    listing = await svc.update(user_id, listing_id, patch)
    return ListingEnvelope(data=ListingResponse.model_validate(listing))


@router.delete("/{listing_id}", response_model=MessageEnvelope)
async def delete_listing(
    session: DbSession,
    indexer: Indexer,
    storage: Storage,
    user_id: CurrentUserId,
    listing_id: str,
):
    svc = ListingService(ListingRepository(session), indexer, storage, settings.listing_placeholder_image)
    await svc.delete(user_id, listing_id)
    return MessageEnvelope(message="Listing successfully deleted")
