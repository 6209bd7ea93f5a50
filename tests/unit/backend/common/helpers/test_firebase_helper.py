import asyncio

import httpx
import pytest

from common.errors import DecodeError, TransportError
from common.helpers.firebase_helper import FirebaseHelper, build_firebase_client


def make_helper(handler, schema_version=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirebaseHelper("https://db.test/", client, schema_version=schema_version)


def test_url_includes_schema_version():
    helper = make_helper(lambda request: httpx.Response(200), schema_version="v2")

    assert helper.url("user_42", "places") == "https://db.test/v2/user_42/places.json"
    assert helper.root_url() == "https://db.test/v2.json"


def test_url_of_legacy_schema():
    helper = make_helper(lambda request: httpx.Response(200))

    assert helper.url("user_42", "昼だけ") == "https://db.test/user_42/昼だけ.json"
    assert helper.root_url() == "https://db.test/.json"


def test_shallow_get_sends_query_parameter():
    seen = {}

    def handler(request):
        seen["shallow"] = request.url.params.get("shallow")
        return httpx.Response(200, json={"a": True})

    helper = make_helper(handler)
    result = asyncio.run(helper.get("https://db.test/x.json", shallow=True))

    assert result == {"a": True}
    assert seen["shallow"] == "true"


def test_error_status_raises_transport_error():
    helper = make_helper(lambda request: httpx.Response(401, text="denied"))

    with pytest.raises(TransportError) as error:
        asyncio.run(helper.get("https://db.test/x.json"))

    assert error.value.status_code == 401


def test_network_failure_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    helper = make_helper(handler)

    with pytest.raises(TransportError):
        asyncio.run(helper.put("https://db.test/x.json", "value"))


def test_invalid_json_raises_decode_error():
    helper = make_helper(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(DecodeError):
        asyncio.run(helper.get("https://db.test/x.json"))


def test_null_answer_is_none():
    helper = make_helper(lambda request: httpx.Response(200, text="null"))

    assert asyncio.run(helper.get("https://db.test/x.json")) is None


def test_client_carries_bearer_token():
    client = build_firebase_client("secret-token")

    assert client.headers["Authorization"] == "Bearer secret-token"
