from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from linedesk.models import ChatLog

SENDER_USER = "user"
SENDER_AI = "ai"
SENDER_SYSTEM = "system"


def save_chat_log(
    db: Session,
    user_id: str,
    message: str,
    sender: str,
    ai_type: Optional[str] = None,
    ai_response_id: Optional[str] = None,
) -> ChatLog:
    """Save chat log entry to database."""
    log = ChatLog(
        line_user_id=user_id,
        message=message,
        sender=sender,
        ai_type=ai_type,
        ai_response_id=ai_response_id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(log)
    db.commit()
    return log


def _user_logs(db: Session, user_id: str, since: Optional[datetime]):
    query = db.query(ChatLog).filter(ChatLog.line_user_id == user_id)
    if since is not None:
        query = query.filter(ChatLog.created_at > since)
    return query


def get_conversation_history(
    db: Session,
    user_id: str,
    limit: int = 5,
    since: Optional[datetime] = None,
) -> List[dict]:
    """Get the most recent user/AI turns, oldest first."""
    if limit <= 0:
        return []

    rows = (
        _user_logs(db, user_id, since)
        .filter(ChatLog.sender.in_([SENDER_USER, SENDER_AI]))
        .order_by(ChatLog.created_at.desc())
        .limit(limit)
        .all()
    )

    history = []
    for row in reversed(rows):
        role = "assistant" if row.sender == SENDER_AI else "user"
        history.append({"role": role, "content": row.message})
    return history


def get_last_response_id(db: Session, user_id: str, since: Optional[datetime] = None) -> Optional[str]:
    """Continuation reference of the latest AI turn that produced one."""
    row = (
        _user_logs(db, user_id, since)
        .filter(ChatLog.sender == SENDER_AI, ChatLog.ai_response_id.isnot(None))
        .order_by(ChatLog.created_at.desc())
        .first()
    )
    return row.ai_response_id if row else None
