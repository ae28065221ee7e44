"""
Listing query engine - search, filter, geo radius and sort for GET /listings.
Challenge: Compose independent predicates (AND) plus exactly one sort key.
Design: Equality and text predicates run in the store; the spherical radius test runs here
on the latitude-band candidates the store returns, so results are identical on any backend.
"""

import logging
import math
from dataclasses import dataclass

from sqlalchemy.sql.elements import ColumnElement, UnaryExpression

from app.core.errors import NotFoundError, ServerError, ValidationError
from app.core.identity import UserId
from app.db.models.listing import Listing
from app.db.repositories.listing_repository import ListingRepository
from app.schemas.listing import ListingQuery
from app.search.elasticsearch_client import ListingSearchIndex

logger = logging.getLogger(__name__)

# Earth radius in meters used to turn a distance into an angle on the sphere
EARTH_RADIUS_M = 6378137

# Slack on the latitude band so float rounding never drops a boundary point
_BAND_EPSILON_DEG = 1e-9

# Primary keys are int4 in Postgres
MAX_LISTING_ID = 2**31 - 1


@dataclass(frozen=True)
class SortKey:
    field: str  # "price" | "created_at"
    ascending: bool


@dataclass
class QueryResult:
    count: int
    items: list[Listing]


def angular_radius(radius_km: float) -> float:
    """Radius in km -> radians on the sphere: (km * 1000) / 6378137."""
    return (radius_km * 1000) / EARTH_RADIUS_M


def central_angle(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Great-circle angle in radians between two (lng, lat) points (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(a)))


def within_radius(listing: Listing, lng: float, lat: float, radius_rad: float) -> bool:
    """True if the listing has coordinates inside the spherical cap around (lng, lat)."""
    if listing.longitude is None or listing.latitude is None:
        return False
    return central_angle(lng, lat, listing.longitude, listing.latitude) <= radius_rad


def select_sort_key(sort_by: str | None, price_order: str | None, date_order: str | None) -> SortKey:
    """Price sort, date sort, or newest first. Only one key is ever active."""
    if sort_by == "price":
        return SortKey("price", price_order == "lowToHigh")
    if sort_by == "date":
        return SortKey("created_at", date_order == "oldestToLatest")
    return SortKey("created_at", False)


def order_clauses(key: SortKey) -> list[UnaryExpression]:
    """ORDER BY for a sort key; id breaks ties in the same direction."""
    column = getattr(Listing, key.field)
    if key.ascending:
        return [column.asc(), Listing.id.asc()]
    return [column.desc(), Listing.id.desc()]


def build_conditions(params: ListingQuery, matched_ids: list[int] | None = None) -> list[ColumnElement[bool]]:
    """Store-side predicates. matched_ids is the text-search result, None when no search."""
    conditions: list[ColumnElement[bool]] = []
    if matched_ids is not None:
        conditions.append(Listing.id.in_(matched_ids))
    if params.category:
        conditions.append(Listing.category == params.category)
    if params.subcategory:
        conditions.append(Listing.subcategory == params.subcategory)
    if params.has_geo:
        band = math.degrees(angular_radius(params.radius)) + _BAND_EPSILON_DEG
        conditions.append(Listing.longitude.is_not(None))
        conditions.append(Listing.latitude.between(params.lat - band, params.lat + band))
    return conditions


def parse_listing_id(raw: str | int) -> int:
    """Path ids must be positive integers; anything else is a 400, not a 404."""
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not (text.isascii() and text.isdigit()):
            raise ValidationError("Invalid listing ID format")
        value = int(text)
    if value <= 0 or value > MAX_LISTING_ID:
        raise ValidationError("Invalid listing ID format")
    return value


class ListingQueryEngine:
    """Read-only listing queries. Stateless across requests."""

    def __init__(self, repo: ListingRepository, search_index: ListingSearchIndex):
        self.repo = repo
        self.search_index = search_index

    async def _matching_ids(self, search: str, category: str | None, subcategory: str | None) -> list[int]:
        try:
            return await self.search_index.search_ids(search, category=category, subcategory=subcategory)
        except Exception as exc:
            logger.error("Listing text search failed for %r: %s", search, exc, exc_info=True)
            raise ServerError("Search is currently unavailable") from exc

    async def query(self, params: ListingQuery) -> QueryResult:
        matched_ids = (
            await self._matching_ids(params.search, params.category, params.subcategory) if params.search else None
        )
        if matched_ids == []:
            return QueryResult(count=0, items=[])

        key = select_sort_key(params.sort_by, params.price_order, params.date_order)
        listings = await self.repo.find(build_conditions(params, matched_ids), order_clauses(key))

        if params.has_geo:
            radius_rad = angular_radius(params.radius)
            listings = [l for l in listings if within_radius(l, params.lng, params.lat, radius_rad)]

        return QueryResult(count=len(listings), items=listings)

    async def get(self, raw_id: str | int) -> Listing:
        listing = await self.repo.get_by_id(parse_listing_id(raw_id))
        if listing is None:
            raise NotFoundError("Listing")
        return listing

    async def list_for_owner(self, owner: UserId) -> QueryResult:
        listings = await self.repo.get_by_owner(owner.value)
        return QueryResult(count=len(listings), items=listings)
