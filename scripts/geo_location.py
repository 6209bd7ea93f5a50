"""Backfill the coordinates of every place of a jar with Bing Maps.

Usage:
    python scripts/geo_location.py group_C0123456789 \
        --firebase-url https://taberando.firebaseio.com
"""

from __future__ import annotations

import argparse
import asyncio
import os
from typing import Dict

from common.helpers.firebase_helper import FirebaseHelper, build_firebase_client
from common.helpers.secrets_helper import SecretsHelper
from draw_engine.integrations.bing.geocoding import BingGeocoder, GeocodingError
from draw_engine.storage.firebase_v2 import SCHEMA_VERSION, FirebaseStoreV2


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Geocode every place of a jar.")
    parser.add_argument("jar", help="Jar to backfill (eg group_C0123456789)")
    parser.add_argument(
        "--firebase-url",
        default=os.environ.get("FIREBASE_URL"),
        help="Root URL of the database (defaults to FIREBASE_URL)",
    )
    parser.add_argument(
        "--secret-name",
        default=os.environ.get("SECRET_NAME"),
        help="Secret holding FIREBASE_TOKEN (defaults to SECRET_NAME)",
    )
    return parser.parse_args()


async def backfill(store: FirebaseStoreV2, geocoder: BingGeocoder, jar: str) -> Dict[str, str]:
    failures: Dict[str, str] = {}
    places = await store.get_all_places(jar)
    for place in places:
        try:
            coordinates = await asyncio.to_thread(geocoder.geocode, place.name)
        except GeocodingError as error:
            failures[place.name] = str(error)
            continue
        await store.set_place_coordinates(jar, place, coordinates)
    print(f"{len(places)} place(s), {len(failures)} not found")
    return failures


async def run(args: argparse.Namespace) -> int:
    geocoder = BingGeocoder.from_env()
    if geocoder is None:
        print("BING_MAP_API_KEY is required.")
        return 1
    if not args.firebase_url:
        print("A Firebase URL is required (--firebase-url or FIREBASE_URL).")
        return 1

    token = SecretsHelper(args.secret_name).get_secret_value("FIREBASE_TOKEN") if args.secret_name else None
    async with build_firebase_client(token) as client:
        store = FirebaseStoreV2(
            FirebaseHelper(args.firebase_url, client, schema_version=SCHEMA_VERSION)
        )
        failures = await backfill(store, geocoder, args.jar)

    for name, reason in failures.items():
        print(f"  {name}: {reason}")
    return 0


def main() -> int:
    return asyncio.run(run(parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
