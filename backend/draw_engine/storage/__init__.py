# Built-in imports
import random
from typing import Optional

# External imports
import httpx

# Own imports
from common.helpers.firebase_helper import FirebaseHelper
from draw_engine.storage.composite import CompositeFirebaseStore
from draw_engine.storage.firebase_v1 import LegacyFirebaseStore
from draw_engine.storage.firebase_v2 import SCHEMA_VERSION, FirebaseStoreV2
from draw_engine.storage.gateway import StorageGateway

STORAGE_BACKENDS = ("v1", "v2", "composite")


def build_storage(
    backend: str,
    base_url: str,
    client: httpx.AsyncClient,
    rng: Optional[random.Random] = None,
) -> StorageGateway:
    """Return the gateway for ``backend`` (one of ``STORAGE_BACKENDS``)."""
    rng = rng or random.Random()
    if backend == "v1":
        return LegacyFirebaseStore(FirebaseHelper(base_url, client), rng)
    if backend == "v2":
        return FirebaseStoreV2(
            FirebaseHelper(base_url, client, schema_version=SCHEMA_VERSION), rng
        )
    if backend == "composite":
        return CompositeFirebaseStore(
            [
                FirebaseStoreV2(
                    FirebaseHelper(base_url, client, schema_version=SCHEMA_VERSION),
                    rng,
                ),
                LegacyFirebaseStore(FirebaseHelper(base_url, client), rng),
            ]
        )
    raise ValueError(f"Unknown storage backend {backend!r}; expected {STORAGE_BACKENDS}")


__all__ = [
    "CompositeFirebaseStore",
    "FirebaseStoreV2",
    "LegacyFirebaseStore",
    "StorageGateway",
    "build_storage",
]
