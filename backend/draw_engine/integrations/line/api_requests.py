# Built-in imports
from typing import Iterable, Optional

# External imports
import httpx
from aws_lambda_powertools import Logger

# Own imports
from common.errors import MessagingError
from common.logger import custom_logger
from common.models.conversation import ChannelKind, Conversation
from draw_engine.integrations.line.messages import PushMessageModel, TextMessage

BASE_LINE_URL = "https://api.line.me/v2/bot"


def build_line_client(
    token: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    return httpx.AsyncClient(
        base_url=BASE_LINE_URL, headers=headers, transport=transport
    )


class LineAPI:
    """
    Class that contains the base helpers for interacting with the LINE Messaging API.
    """

    def __init__(self, client: httpx.AsyncClient, logger: Optional[Logger] = None):
        self.client = client
        self.logger = logger or custom_logger()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as error:
            self.logger.exception("Unexpected error while calling the LINE API")
            raise MessagingError(f"{method} {path} failed: {error}") from error

        self.logger.info(f"Response has status_code: {response.status_code}")
        if response.is_error:
            self.logger.error(
                "LINE API answered with an error status",
                extra={"path": path, "body": response.text},
            )
            raise MessagingError(
                f"{method} {path} answered {response.status_code}",
                status_code=response.status_code,
            )
        return response

    async def push_message(self, to: str, messages: Iterable[TextMessage]) -> None:
        """
        Method to push messages to a user, group or room.
        :param to (str): Identifier of the recipient.
        :param messages (Iterable(TextMessage)): Messages to send, in order.
        """
        payload = PushMessageModel(to=to, messages=list(messages))
        self.logger.debug("Pushing LINE message", extra={"to": to})
        await self._request("POST", "/message/push", json=payload.to_payload())

    async def get_jar_label(self, conversation: Conversation) -> str:
        """Human readable name of a conversation, used to label its jar."""
        if conversation.kind == ChannelKind.GROUP:
            response = await self._request("GET", f"/group/{conversation.id}/summary")
            return response.json().get("groupName") or conversation.id
        if conversation.kind == ChannelKind.USER:
            response = await self._request("GET", f"/profile/{conversation.id}")
            return response.json().get("displayName") or conversation.id
        # Rooms have no name
        return conversation.id
