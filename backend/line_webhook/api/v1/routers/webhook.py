# Built-in imports
import asyncio
import base64
import hashlib
import hmac
from typing import Annotated, List, Optional, Tuple
from uuid import uuid4

# External imports
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from pydantic import ValidationError

# Own imports
from common.errors import UnknownActionError
from common.logger import custom_logger
from common.models.conversation import Conversation
from draw_engine.dispatcher import ActionDispatcher
from draw_engine.integrations.line.schemas import WebhookEvent, WebhookPayload
from draw_engine.user_action import (
    Add,
    Intent,
    Refresh,
    SetLocation,
    WhoAmI,
    decode_postback,
)
from line_webhook.dependencies import get_channel_secret, get_dispatcher

router = APIRouter()
logger = custom_logger()

REFRESH_WORDS = ("refresh", "更新")
WHOAMI_WORD = "whoami"

Action = Tuple[Conversation, Intent]


def sign(body: bytes, channel_secret: str) -> str:
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(body: bytes, signature: Optional[str], channel_secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign(body, channel_secret), signature)


def message_to_intent(event: WebhookEvent) -> Optional[Intent]:
    message = event.message
    if message is None:
        return None
    if message.type == "text" and message.text is not None:
        text = message.text.lower().strip()
        if text in REFRESH_WORDS:
            return Refresh()
        if text == WHOAMI_WORD:
            return WhoAmI()
        return None
    if message.type == "location":
        if message.latitude is None or message.longitude is None:
            return None
        return SetLocation(message.latitude, message.longitude)
    return None


def event_to_action(event: WebhookEvent) -> Optional[Action]:
    """Turn an active webhook event into the intent to run, if any."""
    if event.mode != "active":
        logger.info(f"Unknown event mode {event.mode}")
        return None

    if event.type in ("join", "follow"):
        logger.info(f"Bot joined a conversation ({event.type})", source=event.source.model_dump())
        return None

    conversation = event.source.to_conversation()
    if conversation is None:
        logger.warning("Event source is incomplete", source=event.source.model_dump())
        return None

    if event.type == "message":
        intent = message_to_intent(event)
    elif event.type == "postback" and event.postback is not None:
        try:
            intent = decode_postback(event.postback.data)
        except UnknownActionError as error:
            logger.warning(f"Dropping postback: {error}")
            return None
        if isinstance(intent, Add):
            logger.info("Additions go through the form; ignoring the postback")
            return None
    else:
        logger.info(f"Unhandled event {event.type}")
        return None

    if intent is None:
        return None
    return conversation, intent


async def dispatch_all(
    dispatcher: ActionDispatcher, actions: List[Action], host: str
) -> None:
    results = await asyncio.gather(
        *(dispatcher.deliver(conversation, intent, host) for conversation, intent in actions),
        return_exceptions=True,
    )
    for (conversation, intent), result in zip(actions, results):
        if isinstance(result, Exception):
            logger.error(
                f"Dispatch of {type(intent).__name__} failed: {result}",
                conversation=conversation.id,
            )


@router.post("/line/webhook", tags=["LINE"])
async def post_line_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_line_signature: Annotated[Optional[str], Header()] = None,
    channel_secret: str = Depends(get_channel_secret),
    dispatcher: ActionDispatcher = Depends(get_dispatcher),
):
    correlation_id = str(uuid4())
    logger.append_keys(correlation_id=correlation_id)
    logger.info("Started LINE handler for post_line_webhook()")

    body = await request.body()
    if not verify_signature(body, x_line_signature, channel_secret):
        logger.warning("Rejected webhook with an invalid signature")
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        payload = WebhookPayload.model_validate_json(body)
    except ValidationError as error:
        logger.warning(f"Rejected webhook with an invalid body: {error}")
        raise HTTPException(status_code=400, detail="Invalid payload")

    host = request.headers.get("host", "")
    logger.info(
        f"Got {len(payload.events)} webhook event(s) from bot {payload.destination} @ {host}"
    )

    actions = [action for action in map(event_to_action, payload.events) if action]
    if actions:
        background_tasks.add_task(dispatch_all, dispatcher, actions, host)

    logger.info("Finished post_line_webhook() successfully")
    return {"message": "ok", "details": f"Accepted {len(actions)} action(s)"}
