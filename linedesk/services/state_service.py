from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from linedesk.logging_config import get_logger
from linedesk.models import UserState

logger = get_logger("state_service")


@dataclass(frozen=True)
class ConversationSnapshot:
    user_id: str
    nickname: Optional[str] = None
    human_mode: bool = False
    last_human_interaction_at: Optional[datetime] = None
    last_ai_reset_at: Optional[datetime] = None
    exists: bool = False


def fresh_state(user_id: str) -> ConversationSnapshot:
    """Sentinel for a user with no stored row: AI mode, never handed over."""
    return ConversationSnapshot(user_id=user_id)


def get_state(db: Session, user_id: str) -> ConversationSnapshot:
    row = db.query(UserState).filter(UserState.line_user_id == user_id).first()
    if row is None:
        return fresh_state(user_id)

    return ConversationSnapshot(
        user_id=row.line_user_id,
        nickname=row.nickname,
        human_mode=bool(row.is_human_mode),
        last_human_interaction_at=row.last_human_interaction,
        last_ai_reset_at=row.last_ai_reset_at,
        exists=True,
    )


def upsert_handover(db: Session, user_id: str, nickname: Optional[str], now: datetime) -> None:
    """Create or refresh the row in human mode."""
    values = {"line_user_id": user_id, "is_human_mode": True, "last_human_interaction": now}
    update = {"is_human_mode": True, "last_human_interaction": now}
    if nickname:
        values["nickname"] = nickname
        update["nickname"] = nickname

    stmt = insert(UserState).values(**values).on_conflict_do_update(index_elements=["line_user_id"], set_=update)
    db.execute(stmt)
    db.commit()

    logger.info(f"User {user_id} handed over to human", extra={"context": {"user_id": user_id}})


def clear_human_mode(db: Session, user_id: str) -> None:
    stmt = (
        insert(UserState)
        .values(line_user_id=user_id, is_human_mode=False)
        .on_conflict_do_update(index_elements=["line_user_id"], set_={"is_human_mode": False})
    )
    db.execute(stmt)
    db.commit()

    logger.info(f"User {user_id} returned to AI", extra={"context": {"user_id": user_id}})


def reset_to_ai(db: Session, user_id: str, now: Optional[datetime] = None) -> datetime:
    """Operator reset: leave human mode and start a fresh AI context from now."""
    reset_at = now or datetime.now(timezone.utc)
    stmt = (
        insert(UserState)
        .values(line_user_id=user_id, is_human_mode=False, last_ai_reset_at=reset_at)
        .on_conflict_do_update(
            index_elements=["line_user_id"],
            set_={"is_human_mode": False, "last_ai_reset_at": reset_at},
        )
    )
    db.execute(stmt)
    db.commit()

    logger.info(f"User {user_id} reset to AI", extra={"context": {"user_id": user_id}})
    return reset_at
