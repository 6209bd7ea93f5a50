import asyncio
import json

import httpx
import pytest

from common.errors import MessagingError
from common.models.conversation import ChannelKind, Conversation
from draw_engine.integrations.line.api_requests import LineAPI, build_line_client
from draw_engine.integrations.line.messages import text


class DummyLine:
    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests = []

    def handle(self, request):
        self.requests.append(request)
        if request.url.path.endswith("/summary"):
            return httpx.Response(self.status_code, json={"groupName": "Friends"})
        if "/profile/" in request.url.path:
            return httpx.Response(self.status_code, json={"displayName": "Taro"})
        return httpx.Response(self.status_code, json={})


def make_api(line):
    return LineAPI(build_line_client("line-token", transport=httpx.MockTransport(line.handle)))


def test_push_message():
    line = DummyLine()

    asyncio.run(make_api(line).push_message("G1", [text("hello")]))

    request = line.requests[0]
    assert str(request.url) == "https://api.line.me/v2/bot/message/push"
    assert request.headers["Authorization"] == "Bearer line-token"
    assert json.loads(request.content) == {
        "to": "G1",
        "messages": [{"type": "text", "text": "hello"}],
    }


def test_push_message_error_status():
    with pytest.raises(MessagingError) as error:
        asyncio.run(make_api(DummyLine(status_code=429)).push_message("G1", [text("x")]))

    assert error.value.status_code == 429


@pytest.mark.parametrize(
    "conversation, expected",
    [
        (Conversation(kind=ChannelKind.GROUP, id="G1"), "Friends"),
        (Conversation.user("U1"), "Taro"),
        (Conversation(kind=ChannelKind.ROOM, id="R1"), "R1"),
    ],
)
def test_jar_labels(conversation, expected):
    assert asyncio.run(make_api(DummyLine()).get_jar_label(conversation)) == expected
