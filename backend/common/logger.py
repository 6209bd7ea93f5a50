# Built-in imports
import os

# External imports
from aws_lambda_powertools import Logger

SERVICE_NAME = os.environ.get("POWERTOOLS_SERVICE_NAME", "taberando-draw-bot")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def custom_logger() -> Logger:
    """Return a powertools Logger shared by every module of the bot."""
    return Logger(
        service=SERVICE_NAME,
        level=LOG_LEVEL,
        log_uncaught_exceptions=True,
        child=False,
    )
