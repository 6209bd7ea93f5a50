# Built-in imports
from enum import Enum
from typing import Optional

# External imports
from pydantic import BaseModel, ConfigDict


class ChannelKind(str, Enum):
    USER = "user"
    GROUP = "group"
    ROOM = "room"


class Conversation(BaseModel):
    """
    Class that represents the LINE source an event came from.

    Attributes:
        kind: ChannelKind: direct user, group or room.
        id: str: Identifier of the user, group or room.
        user_id: Optional(str): Sender of the event, when LINE discloses it.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChannelKind
    id: str
    user_id: Optional[str] = None

    @classmethod
    def user(cls, user_id: str) -> "Conversation":
        return cls(kind=ChannelKind.USER, id=user_id, user_id=user_id)

    @property
    def sender_id(self) -> Optional[str]:
        """Single user to address when a reply must not go to the whole group."""
        if self.kind == ChannelKind.USER:
            return self.id
        return self.user_id
