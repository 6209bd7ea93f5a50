###############################################################################
# Entrypoint for the LINE Draw Bot Webhook Core Functionalities
###############################################################################

# Built-in imports
import os

# External imports
from mangum import Mangum
from fastapi import FastAPI

# Own imports
from line_webhook.api.v1.routers import add_place, webhook

# Environment used to dynamically load the FastAPI docs with stages
ENVIRONMENT = os.environ.get("ENVIRONMENT")


app = FastAPI(
    title="Taberando Draw Bot API",
    description="LINE bot drawing a restaurant out of the conversation jar",
    version="v1",
    root_path=f"/{ENVIRONMENT}" if ENVIRONMENT else "",
    docs_url="/api/v1/docs",
    openapi_url="/api/v1/docs/openapi.json",
)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


app.include_router(webhook.router)
app.include_router(add_place.router)

# This is the Lambda Function's entrypoint (handler)
handler = Mangum(app)
