# Built-in imports
from typing import Any, Dict, Optional

# External imports
import httpx

# Own imports
from common.logger import custom_logger
from common.errors import DecodeError, TransportError

logger = custom_logger()


def build_firebase_client(
    token: Optional[str], transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """Shared async client with the bearer credentials baked into its headers."""
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(headers=headers, transport=transport)


class FirebaseHelper:
    """Custom Firebase Realtime Database Helper for the REST API."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        schema_version: Optional[str] = None,
    ) -> None:
        """
        :param base_url (str): Root URL of the database (no trailing slash).
        :param client (httpx.AsyncClient): Shared client holding the credentials.
        :param schema_version (Optional(str)): Path segment of the schema (eg "v2").
        """
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.schema_version = schema_version

    def url(self, jar: str, path: str) -> str:
        """Return ``{base}[/{schema}]/{jar}/{path}.json``."""
        if self.schema_version:
            return f"{self.base_url}/{self.schema_version}/{jar}/{path}.json"
        return f"{self.base_url}/{jar}/{path}.json"

    def root_url(self, path: str = "") -> str:
        segments = [self.base_url]
        if self.schema_version:
            segments.append(self.schema_version)
        if path:
            segments.append(path)
        if len(segments) == 1:
            return f"{self.base_url}/.json"
        return "/".join(segments) + ".json"

    async def request(
        self,
        method: str,
        url: str,
        json_body: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Method to run a single REST call and decode its JSON answer.
        :param method (str): HTTP verb (GET, PUT, POST, DELETE).
        :param url (str): Full URL of the node.
        :param json_body (Any): Optional JSON payload for writes.
        :param params (Optional(dict)): Optional query parameters (eg shallow).
        """
        logger.debug(f"Starting {method} {url}", params=params)
        kwargs: Dict[str, Any] = {"params": params}
        if json_body is not None:
            kwargs["json"] = json_body

        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as error:
            logger.error(
                "Firebase request failed",
                extra={"method": method, "url": url, "error": str(error)},
            )
            raise TransportError(f"{method} {url} failed: {error}") from error

        if response.is_error:
            logger.error(
                "Firebase answered with an error status",
                extra={
                    "method": method,
                    "url": url,
                    "status_code": response.status_code,
                    "body": response.text,
                },
            )
            raise TransportError(
                f"{method} {url} answered {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as error:
            logger.error(
                "Firebase answer is not JSON",
                extra={"method": method, "url": url, "body": response.text},
            )
            raise DecodeError(f"{method} {url} returned invalid JSON") from error

    async def get(self, url: str, shallow: bool = False) -> Any:
        params = {"shallow": "true"} if shallow else None
        return await self.request("GET", url, params=params)

    async def put(self, url: str, value: Any) -> Any:
        return await self.request("PUT", url, json_body=value)

    async def post(self, url: str, value: Any) -> Any:
        return await self.request("POST", url, json_body=value)

    async def delete(self, url: str) -> Any:
        return await self.request("DELETE", url)
