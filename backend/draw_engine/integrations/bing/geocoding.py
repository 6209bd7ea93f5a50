# Built-in imports
import json
import os
from typing import Any, List, Optional, Tuple

# External imports
import requests
from requests.adapters import HTTPAdapter, Retry

# Own imports
from common.logger import custom_logger
from common.models.coordinates import Coordinates

logger = custom_logger()

AUTO_SUGGEST_URL = "https://dev.virtualearth.net/REST/v1/AutoSuggest/"
LOCATIONS_URL = "http://dev.virtualearth.net/REST/v1/Locations"

DEFAULT_CONNECT_TIMEOUT = 5
DEFAULT_READ_TIMEOUT = 20


class GeocodingError(Exception):
    """The place name could not be turned into a point."""


def build_session() -> requests.Session:
    """HTTP session with retries for 429/5xx."""
    session = requests.Session()
    retries = Retry(
        total=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def parse_context(raw_context: Optional[str]) -> List[Tuple[str, str]]:
    """
    Parse the AutoSuggest refinements (eg userLocation) from a JSON object.
    Anything else than an object of strings yields no refinement.
    """
    if not raw_context:
        return []
    try:
        context = json.loads(raw_context)
    except json.JSONDecodeError:
        logger.warning("BING_MAP_API_CONTEXT is not valid JSON; ignoring it")
        return []
    if not isinstance(context, dict):
        return []
    return [(str(k), v) for k, v in context.items() if isinstance(v, str)]


def _first_resource(payload: Any) -> Optional[dict]:
    try:
        return payload["resourceSets"][0]["resources"][0]
    except (KeyError, IndexError, TypeError):
        return None


class BingGeocoder:
    """
    Class that finds the coordinates of a place name with the Bing Maps REST API.

    The name is first completed into an address line with AutoSuggest, then
    the address line is located with the Locations API.
    """

    def __init__(
        self,
        api_key: str,
        context: Optional[List[Tuple[str, str]]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.context = context or []
        self.session = session or build_session()

    @classmethod
    def from_env(cls) -> Optional["BingGeocoder"]:
        api_key = os.environ.get("BING_MAP_API_KEY")
        if not api_key:
            logger.info("BING_MAP_API_KEY not configured; geocoding is disabled")
            return None
        return cls(api_key, parse_context(os.environ.get("BING_MAP_API_CONTEXT")))

    def _get_json(self, url: str, params: List[Tuple[str, str]]) -> Any:
        try:
            response = self.session.get(
                url,
                params=params,
                timeout=(DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT),
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as error:
            logger.error("Bing Maps request failed", extra={"url": url, "error": str(error)})
            raise GeocodingError(f"Bing Maps request to {url} failed: {error}") from error

    def find_address(self, query: str) -> str:
        params = [("c", "ja"), ("key", self.api_key), ("query", query)]
        params.extend(self.context)
        resource = _first_resource(self._get_json(AUTO_SUGGEST_URL, params))
        try:
            address_line = resource["value"][0]["address"]["addressLine"]
        except (KeyError, IndexError, TypeError):
            address_line = None
        if not address_line:
            raise GeocodingError(f"Could not find an address for {query!r}")
        return address_line

    def find_coordinates(self, address: str) -> Coordinates:
        params = [
            ("countryRegion", "JP"),
            ("c", "ja"),
            ("maxResults", "1"),
            ("key", self.api_key),
            ("addressLine", address),
        ]
        resource = _first_resource(self._get_json(LOCATIONS_URL, params))
        try:
            latitude, longitude = resource["point"]["coordinates"][:2]
        except (KeyError, TypeError, ValueError):
            raise GeocodingError(f"Could not find coordinates for {address!r}")
        return Coordinates(latitude=latitude, longitude=longitude)

    def geocode(self, place_name: str) -> Coordinates:
        address = self.find_address(place_name)
        logger.debug("Resolved address", extra={"place": place_name, "address": address})
        return self.find_coordinates(address)
