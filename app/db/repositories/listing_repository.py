"""
Listing repository - listing data access (SOLID: Single Responsibility).
Challenge: Run composed predicates and one sort key in SQL; indexes on filter columns.
"""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.sql.elements import ColumnElement, UnaryExpression

from app.db.models.listing import Listing
from app.db.repositories.base_repository import BaseRepository


class ListingRepository(BaseRepository[Listing]):
    """Listing-specific queries. Filtering logic lives in the query engine."""

    def __init__(self, session):
        super().__init__(session, Listing)

    async def find(
        self,
        conditions: Sequence[ColumnElement[bool]],
        order_by: Sequence[UnaryExpression],
    ) -> list[Listing]:
        """All listings matching every condition (AND), in the given order."""
        stmt = select(Listing).where(*conditions).order_by(*order_by)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_owner(self, owner_id: int) -> list[Listing]:
        """Owner's listings, newest first."""
        result = await self.session.execute(
            select(Listing)
            .where(Listing.owner_id == owner_id)
            .order_by(Listing.created_at.desc(), Listing.id.desc())
        )
        return list(result.scalars().all())
