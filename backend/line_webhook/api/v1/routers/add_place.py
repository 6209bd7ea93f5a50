# Built-in imports
from html import escape
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

# External imports
from fastapi import APIRouter, BackgroundTasks, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse

# Own imports
from common.logger import custom_logger
from common.models.conversation import ChannelKind, Conversation
from common.models.place import Meal
from draw_engine.dispatcher import ActionDispatcher
from draw_engine.user_action import Add
from line_webhook.dependencies import get_dispatcher

router = APIRouter()
logger = custom_logger()

MEALS_BY_TIME: Dict[str, Tuple[Meal, ...]] = {
    "both": (Meal.LUNCH, Meal.DINNER),
    "lunch": (Meal.LUNCH,),
    "dinner": (Meal.DINNER,),
}

ADD_FORM_HTML = """<!DOCTYPE html>
<html lang="ja">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>店を追加</title>
</head>
<body>
  <form method="post" action="{action}">
    <label for="place">店の名前</label>
    <input id="place" name="place" type="text" required>
    <fieldset>
      <label><input type="radio" name="time" value="both" checked> 昼・夜</label>
      <label><input type="radio" name="time" value="lunch"> 昼だけ</label>
      <label><input type="radio" name="time" value="dinner"> 夜だけ</label>
    </fieldset>
    <button type="submit">追加</button>
  </form>
</body>
</html>
"""

AUTOCLOSE_HTML = """<!DOCTYPE html>
<html lang="ja">
<head><meta charset="utf-8"><title>追加しました</title></head>
<body><script>window.close();</script>追加しました</body>
</html>
"""


def to_conversation(source_type: str, source_id: str) -> Optional[Conversation]:
    try:
        kind = ChannelKind(source_type)
    except ValueError:
        return None
    if kind == ChannelKind.USER:
        return Conversation.user(source_id)
    return Conversation(kind=kind, id=source_id)


def _check_source(source: str) -> None:
    if source != "line":
        raise HTTPException(status_code=404, detail="Unknown source")


@router.get("/line/draw", tags=["LINE"], response_class=HTMLResponse)
async def get_add_place_form(request: Request, source: str, source_type: str, source_id: str):
    _check_source(source)
    action = escape(str(request.url), quote=True)
    return HTMLResponse(ADD_FORM_HTML.format(action=action))


@router.post("/line/draw", tags=["LINE"], response_class=HTMLResponse)
async def post_add_place_form(
    request: Request,
    background_tasks: BackgroundTasks,
    source: str,
    source_type: str,
    source_id: str,
    place: str = Form(...),
    time: str = Form(...),
    dispatcher: ActionDispatcher = Depends(get_dispatcher),
):
    correlation_id = str(uuid4())
    logger.append_keys(correlation_id=correlation_id)
    _check_source(source)

    conversation = to_conversation(source_type, source_id)
    meals: List[Meal] = list(MEALS_BY_TIME.get(time, ()))
    if conversation is None or not meals or not place.strip():
        logger.warning(
            "Could not handle the addition",
            extra={"source_type": source_type, "time": time},
        )
        raise HTTPException(status_code=400, detail="Invalid addition")

    host = request.headers.get("host", "")
    background_tasks.add_task(
        dispatcher.deliver, conversation, Add(place.strip(), tuple(meals)), host
    )
    logger.info("Scheduled a place addition", extra={"conversation": conversation.id})
    return HTMLResponse(AUTOCLOSE_HTML)
