"""
Listing service - create, update, delete with owner gating.
Challenge: Only the owner may mutate a listing; partial updates re-validated; index kept in sync.
Design: Ownership is checked before the patch is even parsed, so a non-owner always gets 403.
"""

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import UploadFile

from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.core.identity import UserId
from app.db.models.listing import Listing
from app.db.repositories.listing_repository import ListingRepository
from app.db.session import run_after_commit
from app.schemas.common import validate_or_raise
from app.schemas.listing import MAX_ADDITIONAL_IMAGES, ListingCreate, ListingUpdate
from app.search.indexer import ListingIndexer
from app.services.listing_query import parse_listing_id
from app.storage.images import ImageStorage

logger = logging.getLogger(__name__)

IMAGE_FOLDER = "listings"
DEFAULT_PLACEHOLDER_IMAGE = "default-image.jpg"


@dataclass
class ListingForm:
    """Raw multipart text fields, exactly as received."""

    title: str | None = None
    description: str | None = None
    price: str | None = None
    quantity: str | None = None
    category: str | None = None
    subcategory: str | None = None
    location: str | None = None
    lat: str | None = None
    lng: str | None = None


def _listing_to_doc(listing: Listing) -> dict[str, Any]:
    """Document shape for the search index."""
    return {
        "id": listing.id,
        "title": listing.title,
        "description": listing.description or "",
        "location": listing.location,
        "category": listing.category,
        "subcategory": listing.subcategory,
        "price": listing.price,
        "owner_id": listing.owner_id,
        "created_at": listing.created_at.isoformat() if listing.created_at else None,
    }


def _parse_price(raw: str | None) -> float:
    if raw is None or not raw.strip():
        raise ValidationError("price is required")
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"price must be a number, got {raw!r}") from None


def _parse_quantity(raw: str | None) -> int:
    if raw is None or not raw.strip():
        raise ValidationError("quantity is required")
    try:
        return int(raw.strip(), 10)
    except ValueError:
        raise ValidationError(f"quantity must be an integer, got {raw!r}") from None


def _parse_coordinate(name: str, raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number, got {raw!r}") from None


class ListingService:
    """Owner-gated listing mutations. Caller's session commits (get_db); index sync runs after that commit."""

    def __init__(
        self,
        repo: ListingRepository,
        indexer: ListingIndexer,
        storage: ImageStorage,
        placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE,
    ):
        self.repo = repo
        self.indexer = indexer
        self.storage = storage
        self.placeholder_image = placeholder_image

    def _index_after_commit(self, listing: Listing) -> None:
        # The index must never see a write the store rolled back
        doc = _listing_to_doc(listing)
        run_after_commit(self.repo.session, lambda: self.indexer.index(doc))

    def _validate_form(self, form: ListingForm) -> ListingCreate:
        lat = _parse_coordinate("lat", form.lat)
        lng = _parse_coordinate("lng", form.lng)
        if lat is None or lng is None:
            # Coordinates only exist as a pair; a lone value is dropped
            lat = lng = None
        return validate_or_raise(
            ListingCreate,
            {
                "title": form.title,
                "description": form.description,
                "price": _parse_price(form.price),
                "quantity": _parse_quantity(form.quantity),
                "category": form.category,
                "subcategory": form.subcategory,
                "location": form.location,
                "main_image": self.placeholder_image,
                "lat": lat,
                "lng": lng,
            },
        )

    async def create(
        self,
        owner: UserId,
        form: ListingForm,
        main_image: UploadFile | None = None,
        additional_images: list[UploadFile] | None = None,
    ) -> Listing:
        """Validate, store images, persist, enqueue indexing."""
        data = self._validate_form(form)

        # Browsers send an empty, unnamed part for an untouched file input
        if main_image is not None and main_image.filename:
            data.main_image = await self.storage.save(main_image, IMAGE_FOLDER)
        extra_files = [f for f in additional_images or [] if f.filename][:MAX_ADDITIONAL_IMAGES]
        data.additional_images = [await self.storage.save(f, IMAGE_FOLDER) for f in extra_files]

        listing = Listing(
            owner_id=owner.value,
            title=data.title,
            description=data.description,
            price=data.price,
            quantity=data.quantity,
            category=data.category,
            subcategory=data.subcategory,
            location=data.location,
            main_image=data.main_image,
            additional_images=data.additional_images,
            longitude=data.lng,
            latitude=data.lat,
        )
        listing = await self.repo.add(listing)
        self._index_after_commit(listing)
        logger.info("Listing %s created by user %s", listing.id, owner, extra={"listing_id": listing.id})
        return listing

    async def _get_owned(self, requester: UserId, raw_id: str | int, action: str) -> Listing:
        listing = await self.repo.get_by_id(parse_listing_id(raw_id))
        if listing is None:
            raise NotFoundError("Listing")
        if UserId(listing.owner_id) != requester:
            logger.warning("User %s denied %s on listing %s", requester, action, listing.id)
            raise ForbiddenError(f"Not authorized to {action} this listing")
        return listing

    async def update(self, requester: UserId, raw_id: str | int, patch: Any) -> Listing:
        """Apply only the fields present in `patch`; everything else is left as is."""
        listing = await self._get_owned(requester, raw_id, "update")
        if not isinstance(patch, dict):
            raise ValidationError("Update body must be a JSON object")
        changes = validate_or_raise(ListingUpdate, patch).model_dump(exclude_unset=True)

        if "lat" in changes:
            listing.latitude = changes.pop("lat")
            listing.longitude = changes.pop("lng")
        for field, value in changes.items():
            setattr(listing, field, value)

        listing = await self.repo.save(listing)
        self._index_after_commit(listing)
        logger.info("Listing %s updated by user %s", listing.id, requester, extra={"listing_id": listing.id})
        return listing

    async def delete(self, requester: UserId, raw_id: str | int) -> None:
        """Hard delete. Stored images are left in place."""
        listing = await self._get_owned(requester, raw_id, "delete")
        listing_id = listing.id
        await self.repo.delete(listing)
        run_after_commit(self.repo.session, lambda: self.indexer.remove(listing_id))
        logger.info("Listing %s deleted by user %s", listing_id, requester, extra={"listing_id": listing_id})
