"""Copy every legacy jar into the normalized (v2) schema.

The copy is not idempotent, so the script refuses to run without --confirm.

Usage:
    python scripts/migrate_v2.py --firebase-url https://taberando.firebaseio.com --confirm
"""

from __future__ import annotations

import argparse
import asyncio
import os

from common.helpers.firebase_helper import FirebaseHelper, build_firebase_client
from common.helpers.secrets_helper import SecretsHelper
from draw_engine.migration_v2 import migrate_v2
from draw_engine.storage.firebase_v2 import SCHEMA_VERSION, FirebaseStoreV2


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Migrate legacy jars to v2.")
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
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Required: running the migration twice duplicates every place",
    )
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    if not args.confirm:
        print("Refusing to migrate without --confirm.")
        return 1
    if not args.firebase_url:
        print("A Firebase URL is required (--firebase-url or FIREBASE_URL).")
        return 1

    token = SecretsHelper(args.secret_name).get_secret_value("FIREBASE_TOKEN") if args.secret_name else None
    async with build_firebase_client(token) as client:
        source = FirebaseHelper(args.firebase_url, client)
        target = FirebaseStoreV2(
            FirebaseHelper(args.firebase_url, client, schema_version=SCHEMA_VERSION)
        )
        report = await migrate_v2(source, target)

    print(
        f"Migrated {len(report.migrated_jars)} jar(s) and {report.migrated_places} place(s)."
    )
    for entry in report.skipped_entries:
        print(f"  skipped {entry}")
    for jar, reason in report.failed_jars.items():
        print(f"  failed {jar}: {reason}")
    return 0 if not report.failed_jars else 2


def main() -> int:
    return asyncio.run(run(parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
