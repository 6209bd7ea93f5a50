"""Process wide objects of the bot, built once from the environment."""

# Built-in imports
import os
from functools import lru_cache

# Own imports
from common.helpers.firebase_helper import build_firebase_client
from common.helpers.secrets_helper import SecretsHelper
from common.logger import custom_logger
from draw_engine.dispatcher import ActionDispatcher
from draw_engine.engine import DrawEngine
from draw_engine.integrations.bing.geocoding import BingGeocoder
from draw_engine.integrations.line.api_requests import LineAPI, build_line_client
from draw_engine.jar import JarResolver, load_aliases_from_env
from draw_engine.storage import build_storage
from draw_engine.storage.gateway import StorageGateway

logger = custom_logger()

DEFAULT_SECRET_NAME = "/dev/taberando-draw-bot"
SECRET_NAME = os.environ.get("SECRET_NAME", DEFAULT_SECRET_NAME)
FIREBASE_URL = os.environ.get("FIREBASE_URL", "")
STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "composite")


@lru_cache(maxsize=1)
def get_secrets_helper() -> SecretsHelper:
    return SecretsHelper(SECRET_NAME)


def get_channel_secret() -> str:
    secret = get_secrets_helper().get_secret_value("LINE_CHANNEL_SECRET")
    if not secret:
        raise RuntimeError("LINE_CHANNEL_SECRET is missing from the bot secret")
    return secret


@lru_cache(maxsize=1)
def get_storage() -> StorageGateway:
    if not FIREBASE_URL:
        raise RuntimeError("FIREBASE_URL is not configured")
    token = get_secrets_helper().get_secret_value("FIREBASE_TOKEN")
    logger.info(f"Using the {STORAGE_BACKEND} storage backend")
    return build_storage(STORAGE_BACKEND, FIREBASE_URL, build_firebase_client(token))


@lru_cache(maxsize=1)
def get_line_api() -> LineAPI:
    token = get_secrets_helper().get_secret_value("LINE_CHANNEL_TOKEN")
    if not token:
        raise RuntimeError("LINE_CHANNEL_TOKEN is missing from the bot secret")
    return LineAPI(build_line_client(token))


@lru_cache(maxsize=1)
def get_engine() -> DrawEngine:
    return DrawEngine(
        get_storage(),
        JarResolver(load_aliases_from_env()),
        BingGeocoder.from_env(),
    )


@lru_cache(maxsize=1)
def get_dispatcher() -> ActionDispatcher:
    return ActionDispatcher(get_engine(), get_line_api())
