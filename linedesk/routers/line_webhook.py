import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from linedesk.database import get_db
from linedesk.logging_config import get_logger
from linedesk.schemas.line import LineWebhookPayload
from linedesk.services.line_service import LineService, verify_signature
from linedesk.services.pipeline_service import handle_event
from linedesk.services.settings_service import SettingsUnavailableError, load_router_settings

logger = get_logger("line_webhook")

router = APIRouter()


@router.post("/line-webhook", response_class=PlainTextResponse)
async def handle_line_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Handle LINE webhook batches:
    - settings are read first (the channel secret lives there)
    - the signature is checked against the raw body before parsing
    - events run one at a time; a failing event does not stop the batch
    """
    body = await request.body()

    try:
        bot_settings = load_router_settings(db)
    except SettingsUnavailableError as e:
        logger.error(f"Settings unavailable: {e}")
        return PlainTextResponse("Failed to fetch settings", status_code=500)

    signature = request.headers.get("x-line-signature")
    if not verify_signature(bot_settings.line_channel_secret, body, signature):
        logger.warning("Rejected webhook with invalid signature")
        return PlainTextResponse("Invalid signature", status_code=401)

    try:
        payload = LineWebhookPayload(**json.loads(body))
    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid LINE webhook payload: {e}")
        return PlainTextResponse("Invalid payload", status_code=400)

    line = LineService(bot_settings.line_channel_access_token or "")

    for event in payload.events:
        try:
            outcome = handle_event(db, bot_settings, line, event)
        except Exception as e:
            db.rollback()
            logger.error(
                f"Event processing failed: {e}",
                exc_info=True,
                extra={"context": {"event_id": event.webhook_event_id, "user_id": event.user_id}},
            )
            continue

        logger.info(
            f"Event {outcome.value}",
            extra={
                "context": {
                    "event_id": event.webhook_event_id,
                    "user_id": event.user_id,
                    "outcome": outcome.value,
                    "redelivery": bool(event.delivery_context and event.delivery_context.is_redelivery),
                }
            },
        )

    return PlainTextResponse("OK")
