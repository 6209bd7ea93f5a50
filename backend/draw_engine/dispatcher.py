"""Routes user intents to the draw engine and formats the replies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from common.errors import MessagingError, PartialWriteError, StorageError
from common.logger import custom_logger
from common.models.conversation import Conversation
from common.models.coordinates import Coordinates
from draw_engine.engine import (
    AlreadyDrawn,
    DrawEngine,
    Drawn,
    NoCandidates,
    NoCandidatesNearby,
)
from draw_engine.integrations.line import messages
from draw_engine.integrations.line.api_requests import LineAPI
from draw_engine.integrations.line.messages import (
    ActiveDraw,
    Idle,
    NoShops,
    NoShopsCloseBy,
    TextMessage,
)
from draw_engine.user_action import (
    Add,
    ArchiveCurrent,
    ClearLocation,
    DeleteCurrent,
    Draw,
    Intent,
    Postpone,
    Refresh,
    SetLocation,
    WhoAmI,
)

logger = custom_logger()

TEXT_DRAWN = "「{name}」が出ました"
TEXT_ALREADY_DRAWN = "「{name}」が既に出ています"
TEXT_NO_CANDIDATES = "何も出ませんでした"
TEXT_NO_CANDIDATES_NEARBY = "指定位置の近くに店ありません"
TEXT_POSTPONED = "{name}を延期しました"
TEXT_DELETED = "「{name}」を削除しました"
TEXT_ARCHIVED = "「{name}」は完食になりました"
TEXT_PENDING = "予定中:{name}"
TEXT_IDLE = "無予定"
TEXT_ADDED = "新しい店が追加されました"
TEXT_LOCATED = "店の位置は見つかりました。"
TEXT_NOT_LOCATED = "{name}の位置は見つかりませんでした。"
TEXT_LOCATION_SET = "位置取得済み"
TEXT_LOCATION_CLEARED = "位置を消しました"
TEXT_ERROR = "エラーが発生しました。しばらくしてからもう一度お試しください。"
TEXT_PARTIAL_ERROR = "「{name}」の更新が途中で止まりました。もう一度お試しください。"


@dataclass(frozen=True)
class OutboundReply:
    to: str
    message: TextMessage


def error_message(error: StorageError) -> TextMessage:
    if isinstance(error, PartialWriteError):
        return messages.text(TEXT_PARTIAL_ERROR.format(name=error.place.name))
    return messages.text(TEXT_ERROR)


class ActionDispatcher:
    """
    Class that runs an intent for a conversation and builds the reply.

    Storage failures never leave the dispatcher: they are logged and turned
    into an error text for the conversation.
    """

    def __init__(self, engine: DrawEngine, line_api: Optional[LineAPI] = None):
        self.engine = engine
        self.line_api = line_api

    async def dispatch(
        self, conversation: Conversation, intent: Intent, host: str
    ) -> Optional[OutboundReply]:
        try:
            return await self._dispatch(conversation, intent, host)
        except StorageError as error:
            logger.exception(
                "Storage failure while handling the intent",
                extra={"intent": type(intent).__name__, "conversation": conversation.id},
            )
            to = conversation.id
            # Failed additions are only reported to the user who made them
            if isinstance(intent, Add) and conversation.sender_id:
                to = conversation.sender_id
            return OutboundReply(to, error_message(error))

    async def deliver(
        self, conversation: Conversation, intent: Intent, host: str
    ) -> Optional[OutboundReply]:
        """Dispatch the intent and push its reply through the LINE API."""
        reply = await self.dispatch(conversation, intent, host)
        if reply is None:
            return None
        if self.line_api is None:
            logger.warning("No LINE API configured; dropping the reply")
            return reply
        try:
            await self.line_api.push_message(reply.to, [reply.message])
        except MessagingError:
            logger.exception("Could not push the reply", extra={"to": reply.to})
        return reply

    def _to_all(
        self, conversation: Conversation, message: TextMessage
    ) -> OutboundReply:
        return OutboundReply(conversation.id, message)

    def _with_replies(self, text: str, conversation: Conversation, host: str, state):
        return self._to_all(
            conversation,
            messages.text_with_quick_replies(text, conversation, host, state),
        )

    async def _dispatch(
        self, conversation: Conversation, intent: Intent, host: str
    ) -> Optional[OutboundReply]:
        if isinstance(intent, Draw):
            return await self._draw(conversation, intent, host)

        if isinstance(intent, Postpone):
            place = await self.engine.postpone(conversation)
            if place is None:
                # Nothing was drawn, or another draw replaced it meanwhile
                return await self._refresh(conversation, host)
            return self._with_replies(
                TEXT_POSTPONED.format(name=place.name),
                conversation,
                host,
                Idle(intent.coordinates),
            )

        if isinstance(intent, (DeleteCurrent, ArchiveCurrent)):
            template = TEXT_DELETED if isinstance(intent, DeleteCurrent) else TEXT_ARCHIVED
            place = await self.engine.remove_current(conversation)
            if place is None:
                return self._with_replies(
                    TEXT_IDLE, conversation, host, Idle(intent.coordinates)
                )
            return self._with_replies(
                template.format(name=place.name),
                conversation,
                host,
                Idle(intent.coordinates),
            )

        if isinstance(intent, Refresh):
            return await self._refresh(conversation, host)

        if isinstance(intent, Add):
            return await self._add(conversation, intent, host)

        if isinstance(intent, WhoAmI):
            sender = conversation.sender_id
            if sender is None:
                logger.info("No sender to answer whoami", extra={"id": conversation.id})
                return None
            return OutboundReply(sender, messages.text(sender))

        if isinstance(intent, SetLocation):
            return self._with_replies(
                TEXT_LOCATION_SET, conversation, host, Idle(intent.coordinates)
            )

        if isinstance(intent, ClearLocation):
            return self._with_replies(TEXT_LOCATION_CLEARED, conversation, host, Idle())

        raise ValueError(f"Unsupported intent {intent!r}")

    async def _draw(
        self, conversation: Conversation, intent: Draw, host: str
    ) -> OutboundReply:
        outcome = await self.engine.draw(conversation, intent.meal, intent.coordinates)
        if isinstance(outcome, Drawn):
            return self._with_replies(
                TEXT_DRAWN.format(name=outcome.place.name),
                conversation,
                host,
                ActiveDraw(intent.coordinates),
            )
        if isinstance(outcome, AlreadyDrawn):
            return self._with_replies(
                TEXT_ALREADY_DRAWN.format(name=outcome.place.name),
                conversation,
                host,
                ActiveDraw(intent.coordinates),
            )
        if isinstance(outcome, NoCandidatesNearby):
            return self._with_replies(
                TEXT_NO_CANDIDATES_NEARBY,
                conversation,
                host,
                NoShopsCloseBy(outcome.meal, outcome.coordinates),
            )
        if isinstance(outcome, NoCandidates):
            return self._with_replies(
                TEXT_NO_CANDIDATES, conversation, host, NoShops(outcome.meal)
            )
        raise ValueError(f"Unexpected draw outcome {outcome!r}")

    async def _refresh(
        self, conversation: Conversation, host: str, text: Optional[str] = None
    ) -> OutboundReply:
        current = await self.engine.current_draw(conversation)
        if current is None:
            return self._with_replies(text or TEXT_IDLE, conversation, host, Idle())
        return self._with_replies(
            text or TEXT_PENDING.format(name=current.name),
            conversation,
            host,
            ActiveDraw(),
        )

    async def _add(self, conversation: Conversation, intent: Add, host: str):
        if not intent.name.strip() or not intent.meals:
            logger.warning("Ignoring an incomplete addition", extra={"intent": str(intent)})
            return None

        place = await self.engine.add_place(conversation, intent.name.strip(), intent.meals)
        lines: List[str] = [TEXT_ADDED]

        if self.engine.geocoder is not None:
            coordinates: Optional[Coordinates] = None
            try:
                coordinates = await self.engine.locate_place(conversation, place)
            except StorageError:
                # The place itself is saved; only its position is missing
                logger.exception("Could not store the place coordinates")
            if coordinates is None:
                lines.append(TEXT_NOT_LOCATED.format(name=place.name))
            else:
                lines.append(TEXT_LOCATED)

        return await self._refresh(conversation, host, "\n".join(lines))
