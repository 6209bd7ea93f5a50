import copy
import json
import random
from typing import Any, List, Set, Tuple

import httpx
import pytest

from common.helpers.firebase_helper import FirebaseHelper
from draw_engine.storage.firebase_v1 import LegacyFirebaseStore
from draw_engine.storage.firebase_v2 import SCHEMA_VERSION, FirebaseStoreV2

BASE_URL = "https://taberando.test"


class FakeFirebase:
    """In-memory Firebase Realtime Database speaking the REST protocol."""

    def __init__(self, tree=None):
        self.tree = tree if tree is not None else {}
        self.requests: List[Tuple[str, str]] = []
        self.failures: Set[Tuple[str, str]] = set()
        self.counter = 0

    def fail(self, method: str, path: str):
        self.failures.add((method, path))

    @staticmethod
    def segments(path: str) -> List[str]:
        path = path[: -len(".json")] if path.endswith(".json") else path
        return [segment for segment in path.split("/") if segment]

    def lookup(self, segments):
        node = self.tree
        for segment in segments:
            if not isinstance(node, dict) or segment not in node:
                return None
            node = node[segment]
        return node

    def store(self, segments, value):
        node = self.tree
        for segment in segments[:-1]:
            node = node.setdefault(segment, {})
        node[segments[-1]] = value

    def remove(self, segments):
        parents = [self.tree]
        for segment in segments[:-1]:
            node = parents[-1].get(segment)
            if not isinstance(node, dict):
                return
            parents.append(node)
        parents[-1].pop(segments[-1], None)
        # Firebase drops nodes left without children
        for depth in range(len(segments) - 1, 0, -1):
            if not parents[depth]:
                parents[depth - 1].pop(segments[depth - 1], None)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        method = request.method
        self.requests.append((method, path))
        if (method, path) in self.failures:
            return httpx.Response(500, json={"error": "boom"})

        segments = self.segments(path)
        if method == "GET":
            value = copy.deepcopy(self.lookup(segments))
            if request.url.params.get("shallow") == "true" and isinstance(value, dict):
                value = {key: True for key in value}
            return httpx.Response(200, json=value)

        body: Any = json.loads(request.content) if request.content else None
        if method == "PUT":
            self.store(segments, body)
            return httpx.Response(200, json=body)
        if method == "POST":
            self.counter += 1
            key = f"-N{self.counter:04d}"
            self.store(segments + [key], body)
            return httpx.Response(200, json={"name": key})
        if method == "DELETE":
            self.remove(segments)
            return httpx.Response(200, json=None)
        return httpx.Response(405)


@pytest.fixture
def firebase():
    return FakeFirebase()


@pytest.fixture
def firebase_client(firebase):
    return httpx.AsyncClient(transport=httpx.MockTransport(firebase.handle))


@pytest.fixture
def store_v2(firebase_client):
    return FirebaseStoreV2(
        FirebaseHelper(BASE_URL, firebase_client, schema_version=SCHEMA_VERSION),
        random.Random(7),
    )


@pytest.fixture
def store_v1(firebase_client):
    return LegacyFirebaseStore(FirebaseHelper(BASE_URL, firebase_client), random.Random(7))
