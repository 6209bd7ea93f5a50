"""Outbound LINE messages and the quick reply sets attached to them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from common.models.conversation import Conversation
from common.models.coordinates import Coordinates
from common.models.place import Meal
from draw_engine import user_action
from draw_engine.user_action import (
    ArchiveCurrent,
    ClearLocation,
    DeleteCurrent,
    Draw,
    Intent,
    Postpone,
)

LOCATION_ICON_URL = "https://cdn.iconscout.com/icon/free/png-256/pin-191-119557.png"
LABEL_LOCATION = "決"
ADD_PLACE_PATH = "/line/draw"


class QuickReplyAction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    label: str
    data: Optional[str] = None
    uri: Optional[str] = None


class QuickReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = "action"
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    action: QuickReplyAction


class QuickReplyItems(BaseModel):
    items: List[QuickReply]


class TextMessage(BaseModel):
    """
    Class that represents a LINE text message.

    Attributes:
        type: str: Always "text".
        text: str: Body of the message.
        quick_reply: Optional(QuickReplyItems): Buttons shown under the message.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str = "text"
    text: str
    quick_reply: Optional[QuickReplyItems] = Field(default=None, alias="quickReply")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PushMessageModel(BaseModel):
    to: str
    messages: List[TextMessage]

    def to_payload(self) -> dict:
        return {"to": self.to, "messages": [m.to_payload() for m in self.messages]}


@dataclass(frozen=True)
class Idle:
    coordinates: Optional[Coordinates] = None


@dataclass(frozen=True)
class ActiveDraw:
    coordinates: Optional[Coordinates] = None


@dataclass(frozen=True)
class NoShops:
    meal: Meal


@dataclass(frozen=True)
class NoShopsCloseBy:
    meal: Meal
    coordinates: Coordinates


QuickReplyState = Union[Idle, ActiveDraw, NoShops, NoShopsCloseBy]


def postback_quick_reply(intent: Intent, icon: Optional[str] = None) -> QuickReply:
    return QuickReply(
        image_url=icon,
        action=QuickReplyAction(
            type="postback",
            label=user_action.label(intent),
            data=user_action.encode_postback(intent),
        ),
    )


def uri_quick_reply(label: str, uri: str, icon: Optional[str] = None) -> QuickReply:
    return QuickReply(
        image_url=icon, action=QuickReplyAction(type="uri", label=label, uri=uri)
    )


def location_quick_reply() -> QuickReply:
    return QuickReply(
        image_url=LOCATION_ICON_URL,
        action=QuickReplyAction(type="location", label=LABEL_LOCATION),
    )


def clear_location_quick_reply() -> QuickReply:
    return postback_quick_reply(ClearLocation(), LOCATION_ICON_URL)


def add_place_uri(conversation: Conversation, host: str) -> str:
    query = urlencode(
        {
            "source": "line",
            "source_type": conversation.kind.value,
            "source_id": conversation.id,
        }
    )
    return f"https://{host}{ADD_PLACE_PATH}?{query}"


def add_place_quick_reply(conversation: Conversation, host: str) -> QuickReply:
    return uri_quick_reply(user_action.LABEL_ADD, add_place_uri(conversation, host))


def quick_replies(
    conversation: Conversation, host: str, state: QuickReplyState
) -> List[QuickReply]:
    add_place = add_place_quick_reply(conversation, host)

    if isinstance(state, Idle):
        replies = [
            add_place,
            postback_quick_reply(Draw(Meal.LUNCH, state.coordinates)),
            postback_quick_reply(Draw(Meal.DINNER, state.coordinates)),
            location_quick_reply(),
        ]
        if state.coordinates is not None:
            replies.append(clear_location_quick_reply())
        return replies

    if isinstance(state, ActiveDraw):
        return [
            add_place,
            postback_quick_reply(ArchiveCurrent(state.coordinates)),
            postback_quick_reply(Postpone(state.coordinates)),
            postback_quick_reply(DeleteCurrent(state.coordinates)),
        ]

    if isinstance(state, NoShops):
        return [add_place]

    if isinstance(state, NoShopsCloseBy):
        return [add_place, location_quick_reply(), clear_location_quick_reply()]

    raise ValueError(f"Unknown quick reply state {state!r}")


def text(message: str) -> TextMessage:
    return TextMessage(text=message)


def text_with_quick_replies(
    message: str, conversation: Conversation, host: str, state: QuickReplyState
) -> TextMessage:
    return TextMessage(
        text=message,
        quick_reply=QuickReplyItems(items=quick_replies(conversation, host, state)),
    )
