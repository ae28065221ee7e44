"""
Write side of the listing search index, as seen by the API process.
Publishes Celery tasks; a broker outage is logged and never fails the request.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class ListingIndexer:
    """Interface used by the mutation workflow."""

    def index(self, doc: dict[str, Any]) -> None:
        raise NotImplementedError

    def remove(self, listing_id: int) -> None:
        raise NotImplementedError


class CeleryListingIndexer(ListingIndexer):
    def index(self, doc: dict[str, Any]) -> None:
        # Imported lazily: building the Celery app is not needed for read-only processes
        from app.queue.tasks import index_listing_task

        try:
            index_listing_task.delay(doc)
        except Exception as exc:
            logger.warning("Could not enqueue indexing for listing %s: %s", doc.get("id"), exc)

    def remove(self, listing_id: int) -> None:
        from app.queue.tasks import remove_listing_task

        try:
            remove_listing_task.delay(listing_id)
        except Exception as exc:
            logger.warning("Could not enqueue index removal for listing %s: %s", listing_id, exc)
