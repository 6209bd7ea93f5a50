import pytest
import requests

from common.models.coordinates import Coordinates
from draw_engine.integrations.bing.geocoding import (
    AUTO_SUGGEST_URL,
    LOCATIONS_URL,
    BingGeocoder,
    GeocodingError,
    parse_context,
)

SUGGESTION = {
    "resourceSets": [
        {"resources": [{"value": [{"address": {"addressLine": "丸の内1-9-1"}}]}]}
    ]
}
LOCATION = {"resourceSets": [{"resources": [{"point": {"coordinates": [35.68, 139.76]}}]}]}


class DummyResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        return self.payload


class DummySession:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params)))
        return self.responses[url]


def test_geocode_chains_auto_suggest_and_locations():
    session = DummySession(
        {AUTO_SUGGEST_URL: DummyResponse(SUGGESTION), LOCATIONS_URL: DummyResponse(LOCATION)}
    )
    geocoder = BingGeocoder("key", [("userLocation", "35.6,139.7,5000")], session)

    assert geocoder.geocode("東京駅") == Coordinates(latitude=35.68, longitude=139.76)
    suggest_params = session.calls[0][1]
    assert suggest_params["query"] == "東京駅"
    assert suggest_params["userLocation"] == "35.6,139.7,5000"
    assert session.calls[1][1]["addressLine"] == "丸の内1-9-1"
    assert session.calls[1][1]["countryRegion"] == "JP"


def test_missing_address_raises():
    empty = {"resourceSets": [{"resources": [{"value": []}]}]}
    geocoder = BingGeocoder("key", session=DummySession({AUTO_SUGGEST_URL: DummyResponse(empty)}))

    with pytest.raises(GeocodingError):
        geocoder.geocode("nowhere")


def test_missing_point_raises():
    geocoder = BingGeocoder("key", session=DummySession({LOCATIONS_URL: DummyResponse({"resourceSets": []})}))

    with pytest.raises(GeocodingError):
        geocoder.find_coordinates("丸の内1-9-1")


def test_http_error_raises():
    geocoder = BingGeocoder("key", session=DummySession({AUTO_SUGGEST_URL: DummyResponse({}, 401)}))

    with pytest.raises(GeocodingError):
        geocoder.find_address("東京駅")


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, []),
        ("not json", []),
        ("[1]", []),
        ('{"userLocation": "1,2,3", "count": 3}', [("userLocation", "1,2,3")]),
    ],
)
def test_parse_context(raw, expected):
    assert parse_context(raw) == expected


def test_from_env_without_key(monkeypatch):
    monkeypatch.delenv("BING_MAP_API_KEY", raising=False)

    assert BingGeocoder.from_env() is None
