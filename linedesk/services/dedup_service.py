from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from linedesk.logging_config import get_logger
from linedesk.models import ProcessedEvent

logger = get_logger("dedup_service")


class Admission(str, Enum):
    ADMITTED = "admitted"
    DUPLICATE = "duplicate"


def admit(db: Session, event_id: str, now: Optional[datetime] = None) -> Admission:
    """Insert-if-absent on processed_events; a rejected insert means the event was seen before.

    The record is committed immediately so a concurrent redelivery observes it.
    """
    stmt = (
        insert(ProcessedEvent)
        .values(event_id=event_id, created_at=now or datetime.now(timezone.utc))
        .on_conflict_do_nothing(index_elements=["event_id"])
    )
    result = db.execute(stmt)
    db.commit()

    if result.rowcount > 0:
        return Admission.ADMITTED

    logger.info(f"Duplicate event {event_id} skipped", extra={"context": {"event_id": event_id}})
    return Admission.DUPLICATE
