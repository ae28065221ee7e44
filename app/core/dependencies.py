"""
FastAPI dependencies - injection for DB, auth, revocation, search and storage (SOLID: Dependency Inversion).
Challenge: Reusable auth, consistent error responses, swappable collaborators in tests.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import get_settings
from app.core.identity import UserId
from app.core.revocation import RevocationRegistry
from app.core.security import decode_access_token
from app.db.repositories.user_repository import UserRepository
from app.db.session import DbSession
from app.search.elasticsearch_client import ListingSearchIndex
from app.search.indexer import CeleryListingIndexer, ListingIndexer
from app.storage.images import ImageStorage, LocalImageStorage

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_revocation_registry(request: Request) -> RevocationRegistry:
    """Process-scoped registry created by the app factory."""
    return request.app.state.revocation_registry


Registry = Annotated[RevocationRegistry, Depends(get_revocation_registry)]
Credentials = Annotated[HTTPAuthorizationCredentials | None, Depends(security)]


async def get_current_user_id(
    session: DbSession,
    credentials: Credentials,
    registry: Registry,
) -> UserId:
    """Resolve JWT to user id. Raises 401 if missing, revoked, invalid, or the user is gone."""
    if not credentials:
        raise _unauthorized("Not authenticated")
    token = credentials.credentials
    if await registry.is_revoked(token):
        raise _unauthorized("Token is invalid")
    payload = decode_access_token(token)
    if not payload or not str(payload.get("sub", "")).isdigit():
        raise _unauthorized("Invalid or expired token")
    repo = UserRepository(session)
    user = await repo.get_by_id(int(payload["sub"]))
    if not user or not user.is_active:
        raise _unauthorized("User not found or inactive")
    return UserId(user.id)


CurrentUserId = Annotated[UserId, Depends(get_current_user_id)]


def get_search_index() -> ListingSearchIndex:
    return ListingSearchIndex()


def get_listing_indexer() -> ListingIndexer:
    return CeleryListingIndexer()


def get_image_storage() -> ImageStorage:
    return LocalImageStorage(get_settings().upload_dir)


SearchIndex = Annotated[ListingSearchIndex, Depends(get_search_index)]
Indexer = Annotated[ListingIndexer, Depends(get_listing_indexer)]
Storage = Annotated[ImageStorage, Depends(get_image_storage)]
