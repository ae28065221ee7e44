"""
Elasticsearch client - full-text index over listing title, description, location.
Challenge: Index management, async queries from the API, sync writes from Celery workers.
Queries raise on failure (the query engine reports ServerError); index writes degrade gracefully.
"""

import logging
from typing import Any
from urllib.parse import urlparse

from elasticsearch import AsyncElasticsearch, Elasticsearch

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

LISTINGS_INDEX = "listings"

# Fields covered by the combined text search
SEARCH_FIELDS = ["title", "description", "location"]

_es_client: AsyncElasticsearch | None = None


def _es_client_options() -> dict:
    """Build Elasticsearch client options from settings (supports HTTPS + basic auth in URL)."""
    url = settings.elasticsearch_url
    basic_auth = None
    parsed = urlparse(url)
    if parsed.username and parsed.password:
        basic_auth = (parsed.username, parsed.password)
        # Remove auth from URL for the client (it uses basic_auth separately)
        netloc = parsed.hostname or ""
        if parsed.port:
            netloc += f":{parsed.port}"
        url = f"{parsed.scheme}://{netloc}"
    opts = {
        "hosts": [url],
        "verify_certs": settings.elasticsearch_verify_certs,
        "request_timeout": 30,
    }
    if basic_auth:
        opts["basic_auth"] = basic_auth
    return opts


async def get_elasticsearch() -> AsyncElasticsearch:
    """Shared async client for the API process."""
    global _es_client
    if _es_client is None:
        _es_client = AsyncElasticsearch(**_es_client_options())
    return _es_client


async def close_elasticsearch() -> None:
    global _es_client
    if _es_client is not None:
        await _es_client.close()
        _es_client = None


def listings_index_mappings() -> dict:
    """Mapping for the listings index (shared by async and sync create)."""
    return {
        "properties": {
            "id": {"type": "integer"},
            "title": {"type": "text", "analyzer": "standard"},
            "description": {"type": "text", "analyzer": "standard"},
            "location": {"type": "text", "analyzer": "standard"},
            "category": {"type": "keyword"},
            "subcategory": {"type": "keyword"},
            "price": {"type": "float"},
            "owner_id": {"type": "integer"},
            "created_at": {"type": "date"},
        }
    }


def _clean_payload(doc: dict[str, Any]) -> dict[str, Any]:
    """Drop nulls (ES can reject null dates)."""
    return {k: v for k, v in doc.items() if v is not None}


async def ensure_listings_index() -> None:
    """Create listings index with mapping if not exists. Single-node: 0 replicas to avoid unassigned shards."""
    es = await get_elasticsearch()
    if not await es.indices.exists(index=LISTINGS_INDEX):
        await es.indices.create(
            index=LISTINGS_INDEX,
            settings={"index": {"number_of_replicas": 0}},
            mappings=listings_index_mappings(),
        )
        logger.info("Created Elasticsearch index %r", LISTINGS_INDEX)


class ListingSearchIndex:
    """Read side used by the query engine. Injected so tests can swap it out."""

    def __init__(self, page_size: int | None = None):
        self.page_size = page_size or settings.search_page_size

    async def search_ids(
        self,
        query: str,
        category: str | None = None,
        subcategory: str | None = None,
    ) -> list[int]:
        """Ids of every listing whose title/description/location match `query`, best match first.

        Category filters are applied inside the index, and results are paged with
        search_after until exhausted, so no match is dropped by a result-size cap.
        """
        filters = [
            {"term": {name: value}}
            for name, value in (("category", category), ("subcategory", subcategory))
            if value
        ]
        es = await get_elasticsearch()
        ids: list[int] = []
        search_after: list[Any] | None = None
        while True:
            page_options: dict[str, Any] = {}
            if search_after is not None:
                page_options["search_after"] = search_after
            response = await es.search(
                index=LISTINGS_INDEX,
                query={
                    "bool": {
                        "must": {"multi_match": {"query": query, "fields": SEARCH_FIELDS}},
                        "filter": filters,
                    }
                },
                sort=[{"_score": "desc"}, {"id": "asc"}],
                source=False,
                size=self.page_size,
                track_total_hits=False,
                **page_options,
            )
            body = getattr(response, "body", response)
            hits = body["hits"]["hits"]
            ids.extend(int(hit["_id"]) for hit in hits)
            if len(hits) < self.page_size:
                break
            search_after = hits[-1]["sort"]
        if not ids:
            logger.info("search_ids: query=%r returned 0 hits", query)
        return ids


# --- Sync API for Celery (workers run in sync context; async + new_event_loop fails after fork) ---

def _sync_es_client() -> Elasticsearch:
    """New sync client per call (safe in forked Celery worker)."""
    return Elasticsearch(**_es_client_options())


def ensure_listings_index_sync() -> None:
    """Create listings index if not exists. Call from Celery task."""
    try:
        es = _sync_es_client()
        if not es.indices.exists(index=LISTINGS_INDEX):
            es.indices.create(
                index=LISTINGS_INDEX,
                settings={"index": {"number_of_replicas": 0}},
                mappings=listings_index_mappings(),
            )
    except Exception as e:
        logger.warning("ensure_listings_index_sync failed: %s", e)


def index_listing_sync(doc: dict[str, Any]) -> bool:
    """Index (or re-index) one listing. ES 8 requires id to be str."""
    try:
        es = _sync_es_client()
        es.index(index=LISTINGS_INDEX, id=str(doc["id"]), document=_clean_payload(doc))
        return True
    except Exception as e:
        logger.warning("index_listing_sync failed for doc id=%s: %s", doc.get("id"), e)
        return False


def remove_listing_sync(listing_id: int) -> bool:
    """Remove a deleted listing from the index. Missing documents are not an error."""
    try:
        es = _sync_es_client()
        es.options(ignore_status=404).delete(index=LISTINGS_INDEX, id=str(listing_id))
        return True
    except Exception as e:
        logger.warning("remove_listing_sync failed for id=%s: %s", listing_id, e)
        return False


def delete_listings_index_sync() -> bool:
    """Drop the index entirely (reindex script). Returns False if it did not exist."""
    es = _sync_es_client()
    if not es.indices.exists(index=LISTINGS_INDEX):
        return False
    es.indices.delete(index=LISTINGS_INDEX)
    return True
