from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from linedesk.config import settings as app_settings
from linedesk.logging_config import get_logger
from linedesk.schemas.line import LineEvent
from linedesk.services import ai_service
from linedesk.services.chat_log_service import (
    SENDER_AI,
    SENDER_SYSTEM,
    SENDER_USER,
    get_conversation_history,
    get_last_response_id,
    save_chat_log,
)
from linedesk.services.dedup_service import Admission, admit
from linedesk.services.line_service import LineService
from linedesk.services.notification_service import format_handover_notification, notify_agents, resolve_nickname
from linedesk.services.settings_service import RouterSettings
from linedesk.services.state_machine import RoutingAction, decide
from linedesk.services.state_service import ConversationSnapshot, clear_human_mode, get_state, upsert_handover

logger = get_logger("pipeline")

MSG_HANDOVER_ACK = "已為您轉接真人客服，請稍候。"


class EventOutcome(str, Enum):
    IGNORED = "ignored"
    DUPLICATE = "duplicate"
    HANDOVER = "handover"
    HUMAN_HOLD = "human_hold"
    AI_REPLY = "ai_reply"
    AI_ERROR = "ai_error"
    SILENT_DROP = "silent_drop"


def _send_reply(line: LineService, reply_token: str, text: str, user_id: str) -> bool:
    result = line.reply_message(reply_token, text)
    if not result.ok:
        logger.error(
            f"Reply delivery failed: {result.error}",
            extra={"context": {"user_id": user_id, "error_code": result.error_code}},
        )
    return result.ok


def _handle_handover(
    db: Session,
    settings: RouterSettings,
    line: LineService,
    event: LineEvent,
    snapshot: ConversationSnapshot,
    keyword: str,
    now: datetime,
) -> EventOutcome:
    user_id = event.user_id
    nickname = resolve_nickname(line, user_id, snapshot.nickname)
    upsert_handover(db, user_id, nickname, now)

    _send_reply(line, event.reply_token, MSG_HANDOVER_ACK, user_id)
    save_chat_log(db, user_id, MSG_HANDOVER_ACK, SENDER_SYSTEM)

    text = format_handover_notification(nickname, keyword, event.text)
    delivered = notify_agents(line, settings.agent_user_ids, text)
    logger.info(
        f"Handover triggered by keyword '{keyword}'",
        extra={
            "context": {
                "user_id": user_id,
                "keyword": keyword,
                "agents": len(settings.agent_user_ids),
                "agents_notified": len(delivered),
            }
        },
    )
    return EventOutcome.HANDOVER


def _handle_ai(
    db: Session,
    settings: RouterSettings,
    line: LineService,
    event: LineEvent,
    snapshot: ConversationSnapshot,
    history_limit: int,
) -> EventOutcome:
    user_id = event.user_id
    since = snapshot.last_ai_reset_at
    history = get_conversation_history(db, user_id, limit=history_limit, since=since)
    previous_response_id = get_last_response_id(db, user_id, since=since)
    save_chat_log(db, user_id, event.text, SENDER_USER)

    result = ai_service.respond(settings, history, event.text, previous_response_id=previous_response_id)

    if not result.ok:
        reply_text = ai_service.format_ai_error_reply(result.error)
        _send_reply(line, event.reply_token, reply_text, user_id)
        save_chat_log(db, user_id, reply_text, SENDER_SYSTEM)
        return EventOutcome.AI_ERROR

    reply = result.value
    _send_reply(line, event.reply_token, reply.text, user_id)
    save_chat_log(db, user_id, reply.text, SENDER_AI, ai_type=reply.backend, ai_response_id=reply.response_id)
    return EventOutcome.AI_REPLY


def handle_event(
    db: Session,
    settings: RouterSettings,
    line: LineService,
    event: LineEvent,
    now: Optional[datetime] = None,
    history_limit: Optional[int] = None,
) -> EventOutcome:
    """Run one inbound event through dedup, routing and reply."""
    if not event.is_text_message:
        return EventOutcome.IGNORED

    event_id = event.webhook_event_id
    user_id = event.user_id
    if not event_id or not event.text or not user_id or not event.reply_token:
        return EventOutcome.IGNORED

    now = now or datetime.now(timezone.utc)
    if history_limit is None:
        history_limit = app_settings.ai_history_limit

    if admit(db, event_id, now) == Admission.DUPLICATE:
        return EventOutcome.DUPLICATE

    snapshot = get_state(db, user_id)
    decision = decide(
        snapshot,
        event.text,
        settings.handover_keywords,
        settings.handover_timeout_minutes,
        settings.ai_enabled,
        now,
    )

    if decision.action == RoutingAction.HANDOVER:
        save_chat_log(db, user_id, event.text, SENDER_USER)
        return _handle_handover(db, settings, line, event, snapshot, decision.matched_keyword, now)

    if decision.action == RoutingAction.HUMAN_HOLD:
        save_chat_log(db, user_id, event.text, SENDER_USER)
        return EventOutcome.HUMAN_HOLD

    if decision.reverted_from_human:
        clear_human_mode(db, user_id)

    if decision.action == RoutingAction.SILENT_DROP:
        save_chat_log(db, user_id, event.text, SENDER_USER)
        return EventOutcome.SILENT_DROP

    return _handle_ai(db, settings, line, event, snapshot, history_limit)
