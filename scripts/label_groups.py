"""Label every jar of the normalized schema with its LINE display name.

Usage:
    python scripts/label_groups.py --firebase-url https://taberando.firebaseio.com
"""

from __future__ import annotations

import argparse
import asyncio
import os
from typing import List

from common.errors import JarDecodeError, MessagingError, StorageError
from common.helpers.firebase_helper import FirebaseHelper, build_firebase_client
from common.helpers.secrets_helper import SecretsHelper
from draw_engine.integrations.line.api_requests import LineAPI, build_line_client
from draw_engine.jar import to_conversation
from draw_engine.storage.firebase_v2 import SCHEMA_VERSION, FirebaseStoreV2


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Label jars with LINE names.")
    parser.add_argument(
        "--firebase-url",
        default=os.environ.get("FIREBASE_URL"),
        help="Root URL of the database (defaults to FIREBASE_URL)",
    )
    parser.add_argument(
        "--secret-name",
        default=os.environ.get("SECRET_NAME"),
        help="Secret holding LINE_CHANNEL_TOKEN and FIREBASE_TOKEN",
    )
    return parser.parse_args()


async def label_jars(store: FirebaseStoreV2, line_api: LineAPI) -> List[str]:
    labelled: List[str] = []
    for jar in await store.get_all_jars():
        try:
            label = await line_api.get_jar_label(to_conversation(jar))
            await store.add_label(jar, label)
        except (JarDecodeError, MessagingError, StorageError) as error:
            print(f"Skipping {jar}: {error}")
            continue
        labelled.append(jar)
    return labelled


async def run(args: argparse.Namespace) -> int:
    if not args.firebase_url or not args.secret_name:
        print("--firebase-url and --secret-name are required.")
        return 1

    secrets = SecretsHelper(args.secret_name)
    async with build_firebase_client(
        secrets.get_secret_value("FIREBASE_TOKEN")
    ) as firebase_client, build_line_client(
        secrets.get_secret_value("LINE_CHANNEL_TOKEN")
    ) as line_client:
        store = FirebaseStoreV2(
            FirebaseHelper(args.firebase_url, firebase_client, schema_version=SCHEMA_VERSION)
        )
        labelled = await label_jars(store, LineAPI(line_client))

    print(f"Labelled {len(labelled)} jar(s).")
    return 0


def main() -> int:
    return asyncio.run(run(parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
