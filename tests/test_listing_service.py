"""
Listing service tests - index sync follows the store's commit, never a rolled-back write.
"""

import pytest
from sqlalchemy.exc import InvalidRequestError

from app.core.identity import UserId
from app.db.models import Listing
from app.db.repositories.listing_repository import ListingRepository
from app.services.listing_service import ListingForm, ListingService
from app.storage.images import LocalImageStorage

FORM = ListingForm(
    title="Alphonso mangoes",
    price="499.50",
    quantity="3",
    category="fruits",
    subcategory="tropical",
    location="Jayanagar, Bengaluru",
)


def _service(session, indexer, tmp_path) -> ListingService:
    return ListingService(ListingRepository(session), indexer, LocalImageStorage(tmp_path / "uploads"))


@pytest.mark.asyncio
async def test_create_indexes_only_after_commit(session_factory, indexer, test_user, tmp_path):
    async with session_factory() as s:
        listing = await _service(s, indexer, tmp_path).create(UserId(test_user.id), FORM)
        assert indexer.indexed == []
        await s.commit()
    assert [doc["id"] for doc in indexer.indexed] == [listing.id]


@pytest.mark.asyncio
async def test_rolled_back_create_is_never_indexed(session_factory, indexer, test_user, tmp_path):
    async with session_factory() as s:
        await _service(s, indexer, tmp_path).create(UserId(test_user.id), FORM)
        await s.rollback()
        await s.commit()
    assert indexer.indexed == []


@pytest.mark.asyncio
async def test_rolled_back_delete_keeps_index_entry(session_factory, indexer, make_listing, test_user, tmp_path):
    listing = await make_listing()
    async with session_factory() as s:
        await _service(s, indexer, tmp_path).delete(UserId(test_user.id), listing.id)
        await s.rollback()
    assert indexer.removed == []

    async with session_factory() as s:
        assert await s.get(Listing, listing.id) is not None


@pytest.mark.asyncio
async def test_committed_delete_removes_index_entry(session_factory, indexer, make_listing, test_user, tmp_path):
    listing = await make_listing()
    async with session_factory() as s:
        await _service(s, indexer, tmp_path).delete(UserId(test_user.id), listing.id)
        await s.commit()
    assert indexer.removed == [listing.id]


@pytest.mark.asyncio
async def test_update_reindexes_after_commit(session_factory, indexer, make_listing, test_user, tmp_path):
    listing = await make_listing(price=40.0)
    async with session_factory() as s:
        await _service(s, indexer, tmp_path).update(UserId(test_user.id), listing.id, {"price": 35})
        assert indexer.indexed == []
        await s.commit()
    assert indexer.indexed[-1]["price"] == 35


@pytest.mark.asyncio
async def test_owner_relationship_is_never_lazy_loaded(session_factory, make_listing):
    listing = await make_listing()
    async with session_factory() as s:
        loaded = await s.get(Listing, listing.id)
        with pytest.raises(InvalidRequestError):
            loaded.owner
