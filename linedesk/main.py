from fastapi import FastAPI

from linedesk.config import settings
from linedesk.logging_config import setup_logging
from linedesk.routers import admin, line_webhook

setup_logging(settings.log_level, json_logs=not settings.debug)

app = FastAPI(
    title="LineDesk API",
    description="LINE customer-service router with human handover",
    version="0.1.0",
)

app.include_router(line_webhook.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
