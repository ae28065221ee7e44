"""
Category repository - slug lookups for uniqueness checks.
"""

from sqlalchemy import select

from app.db.models.category import Category
from app.db.repositories.base_repository import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    def __init__(self, session):
        super().__init__(session, Category)

    async def get_by_slug(self, slug: str) -> Category | None:
        result = await self.session.execute(select(Category).where(Category.slug == slug))
        return result.scalar_one_or_none()

    async def slug_taken_by_other(self, slug: str, category_id: int) -> bool:
        """True if another category (different id) already uses this slug."""
        result = await self.session.execute(
            select(Category.id).where(Category.slug == slug, Category.id != category_id)
        )
        return result.first() is not None
