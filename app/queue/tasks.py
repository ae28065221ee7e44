"""
Celery tasks - listing index sync (API publishes, worker consumes).
"""

from app.queue.celery_app import celery_app
from app.search.elasticsearch_client import (
    ensure_listings_index_sync,
    index_listing_sync,
    remove_listing_sync,
)


@celery_app.task(bind=True, max_retries=3)
def index_listing_task(self, listing_doc: dict):
    """Index a listing after create/update."""
    ensure_listings_index_sync()
    if not index_listing_sync(listing_doc):
        raise self.retry(exc=RuntimeError(f"Indexing listing {listing_doc.get('id')} failed"), countdown=5)


@celery_app.task(bind=True, max_retries=3)
def remove_listing_task(self, listing_id: int):
    """Drop a deleted listing from the index."""
    if not remove_listing_sync(listing_id):
        raise self.retry(exc=RuntimeError(f"Removing listing {listing_id} failed"), countdown=5)
