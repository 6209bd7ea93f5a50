# Built-in imports
from typing import List, Optional

# External imports
from pydantic import BaseModel, ConfigDict, Field

# Own imports
from common.models.conversation import ChannelKind, Conversation


class WebhookSource(BaseModel):
    """
    Class that represents the "source" object of a LINE webhook event.

    Attributes:
        type: str: "user", "group" or "room".
        user_id: Optional(str): Sender, absent for some group events.
        group_id: Optional(str): Present when type is "group".
        room_id: Optional(str): Present when type is "room".
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    user_id: Optional[str] = Field(default=None, alias="userId")
    group_id: Optional[str] = Field(default=None, alias="groupId")
    room_id: Optional[str] = Field(default=None, alias="roomId")

    def to_conversation(self) -> Optional[Conversation]:
        if self.type == ChannelKind.USER.value and self.user_id:
            return Conversation.user(self.user_id)
        if self.type == ChannelKind.GROUP.value and self.group_id:
            return Conversation(
                kind=ChannelKind.GROUP, id=self.group_id, user_id=self.user_id
            )
        if self.type == ChannelKind.ROOM.value and self.room_id:
            return Conversation(
                kind=ChannelKind.ROOM, id=self.room_id, user_id=self.user_id
            )
        return None


class WebhookMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    id: Optional[str] = None
    text: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class WebhookPostback(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: str


class WebhookEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    mode: str = "active"
    timestamp: Optional[int] = None
    source: WebhookSource
    reply_token: Optional[str] = Field(default=None, alias="replyToken")
    message: Optional[WebhookMessage] = None
    postback: Optional[WebhookPostback] = None


class WebhookPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    destination: Optional[str] = None
    events: List[WebhookEvent] = Field(default_factory=list)
