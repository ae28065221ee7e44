# Repository pattern: abstract data access (SOLID - Dependency Inversion)

from app.db.repositories.category_repository import CategoryRepository
from app.db.repositories.listing_repository import ListingRepository
from app.db.repositories.user_repository import UserRepository

__all__ = ["UserRepository", "ListingRepository", "CategoryRepository"]
