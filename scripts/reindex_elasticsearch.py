#!/usr/bin/env python3
"""
Reindex all existing listings from the API into Elasticsearch via Celery.
Use this after fixing the worker or when the index was empty; no new data is created.
Requires: API running (to fetch listings). Celery worker must be running to process the queue.

If you get 503 / no_shard_available from Elasticsearch, delete the broken index and reindex:
  python scripts/reindex_elasticsearch.py --reset-index

  python scripts/reindex_elasticsearch.py
  python scripts/reindex_elasticsearch.py --base-url http://localhost:8000/api/v1
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx

from app.queue.tasks import index_listing_task
from app.search.elasticsearch_client import LISTINGS_INDEX, delete_listings_index_sync

API_BASE = "http://localhost:8000/api/v1"


def main():
    ap = argparse.ArgumentParser(description="Enqueue all listings for Elasticsearch reindex")
    ap.add_argument("--base-url", default=API_BASE, help="API base URL")
    ap.add_argument("--reset-index", action="store_true", help="Delete the listings index first, then enqueue")
    args = ap.parse_args()

    if args.reset_index:
        if delete_listings_index_sync():
            print(f"Deleted index '{LISTINGS_INDEX}'. Celery will recreate it on the first task.")
        else:
            print(f"Index '{LISTINGS_INDEX}' does not exist.")
        print()

    # GET /listings has no pagination: one call returns everything
    with httpx.Client(base_url=args.base_url, timeout=60.0) as client:
        r = client.get("/listings")
        if r.status_code != 200:
            print(f"Failed to fetch listings: {r.status_code} {r.text[:200]}")
            sys.exit(1)
        listings = r.json()["data"]

    if not listings:
        print("No listings in DB. Run seed_data.py first.")
        return

    for it in listings:
        index_listing_task.delay({
            "id": it["id"],
            "title": it["title"],
            "description": it.get("description") or "",
            "location": it["location"],
            "category": it["category"],
            "subcategory": it["subcategory"],
            "price": it["price"],
            "owner_id": it["owner_id"],
            "created_at": it.get("created_at"),
        })

    print(f"Enqueued {len(listings)} listings for Elasticsearch reindex. Ensure Celery worker is running.")
    print(f"Check: curl -s 'http://localhost:9200/{LISTINGS_INDEX}/_count?pretty'")


if __name__ == "__main__":
    main()
