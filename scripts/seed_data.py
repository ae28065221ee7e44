#!/usr/bin/env python3
"""
Seed script: creates users, a category taxonomy and listings via the API (no direct DB).
Run: API must be running. For search to find the listings, run the Celery worker as well.
  python scripts/seed_data.py
  python scripts/seed_data.py --users 20 --listings-per-user 10
"""

import argparse
import random
import sys

import httpx

API_BASE = "http://localhost:8000/api/v1"

CATEGORIES = [
    {"name": "Vegetables", "slug": "vegetables", "icon": "carrot", "subcategories": ["leafy", "root", "gourds"]},
    {"name": "Fruits", "slug": "fruits", "icon": "apple", "subcategories": ["citrus", "tropical", "berries"]},
    {"name": "Grains", "slug": "grains", "icon": "wheat", "subcategories": ["rice", "wheat", "millets"]},
    {"name": "Dairy", "slug": "dairy", "icon": "milk", "subcategories": ["milk", "cheese", "curd"]},
]

TITLES = {
    "vegetables": ["Fresh spinach", "Organic carrots", "Bottle gourd", "Red onions", "Baby potatoes"],
    "fruits": ["Alphonso mangoes", "Nagpur oranges", "Bananas (dozen)", "Strawberries", "Papaya"],
    "grains": ["Sona masoori rice", "Whole wheat", "Ragi", "Basmati rice", "Foxtail millet"],
    "dairy": ["Farm fresh milk", "Paneer 500g", "Buffalo curd", "Ghee 1L", "Cow milk butter"],
}

# (location, lat, lng) around Bengaluru and Mysuru
PLACES = [
    ("Koramangala, Bengaluru", 12.9352, 77.6245),
    ("Whitefield, Bengaluru", 12.9698, 77.7500),
    ("Jayanagar, Bengaluru", 12.9250, 77.5938),
    ("Hebbal, Bengaluru", 13.0358, 77.5970),
    ("Mysuru", 12.2958, 76.6394),
]


def main():
    ap = argparse.ArgumentParser(description="Seed users, categories and listings via API")
    ap.add_argument("--users", type=int, default=10, help="Number of users to create")
    ap.add_argument("--listings-per-user", type=int, default=8, help="Listings per user")
    ap.add_argument("--base-url", default=API_BASE, help="API base URL")
    args = ap.parse_args()

    errors = []
    tokens = []
    created_listings = 0

    with httpx.Client(base_url=args.base_url, timeout=30.0) as client:
        print(f"Creating {args.users} users...")
        for i in range(args.users):
            email, password = f"seller{i+1}@example.com", "password123"
            r = client.post("/users/register", data={"email": email, "password": password, "full_name": f"Seller {i+1}"})
            if r.status_code not in (201, 409):
                errors.append(f"Register {email}: {r.status_code} {r.text[:80]}")
                continue
            r = client.post("/users/login", json={"email": email, "password": password})
            if r.status_code != 200:
                errors.append(f"Login {email}: {r.status_code}")
                continue
            tokens.append(r.json()["access_token"])

        if not tokens:
            print("No user could log in; aborting.")
            sys.exit(1)

        headers = {"Authorization": f"Bearer {tokens[0]}"}
        r = client.post("/categories", headers=headers, json=CATEGORIES)
        body = r.json()
        print(f"Categories: {len(body.get('created') or [])} created, {len(body.get('failed', []))} skipped")

        print(f"Creating ~{len(tokens) * args.listings_per_user} listings...")
        for token in tokens:
            headers = {"Authorization": f"Bearer {token}"}
            for _ in range(args.listings_per_user):
                cat = random.choice(CATEGORIES)
                place, lat, lng = random.choice(PLACES)
                form = {
                    "title": random.choice(TITLES[cat["slug"]]),
                    "description": "Harvested this week. Pickup or local delivery.",
                    "price": str(random.choice([20, 45, 60, 99, 150, 240, 499])),
                    "quantity": str(random.randint(1, 50)),
                    "category": cat["slug"],
                    "subcategory": random.choice(cat["subcategories"]),
                    "location": place,
                    "lat": str(lat + random.uniform(-0.01, 0.01)),
                    "lng": str(lng + random.uniform(-0.01, 0.01)),
                }
                r = client.post("/listings", headers=headers, data=form)
                if r.status_code == 201:
                    created_listings += 1
                else:
                    errors.append(f"Listing: {r.status_code} {r.text[:80]}")

    print(f"\nDone. Users: {len(tokens)}, Listings created: {created_listings}")
    if errors:
        print(f"Errors ({len(errors)}):")
        for e in errors[:15]:
            print("  ", e)
    print("\nTip: Run the Celery worker so listings are indexed for text search.")


if __name__ == "__main__":
    main()
