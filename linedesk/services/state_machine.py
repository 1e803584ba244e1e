from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, Optional

from linedesk.services.keyword_service import match_keyword
from linedesk.services.state_service import ConversationSnapshot


class ControlState(str, Enum):
    AI_CONTROLLED = "ai_controlled"
    HUMAN_CONTROLLED = "human_controlled"


class RoutingAction(str, Enum):
    HANDOVER = "handover"
    HUMAN_HOLD = "human_hold"
    AI_REPLY = "ai_reply"
    SILENT_DROP = "silent_drop"


@dataclass(frozen=True)
class RoutingDecision:
    action: RoutingAction
    next_state: ControlState
    matched_keyword: Optional[str] = None
    reverted_from_human: bool = False


def current_state(snapshot: ConversationSnapshot) -> ControlState:
    return ControlState.HUMAN_CONTROLLED if snapshot.human_mode else ControlState.AI_CONTROLLED


def is_timed_out(last_human_interaction_at: Optional[datetime], timeout_minutes: int, now: datetime) -> bool:
    """Human mode has expired once timeout_minutes have passed since the last handover.

    A missing timestamp counts as expired.
    """
    if last_human_interaction_at is None:
        return True
    if last_human_interaction_at.tzinfo is None and now.tzinfo is not None:
        last_human_interaction_at = last_human_interaction_at.replace(tzinfo=timezone.utc)
    return now - last_human_interaction_at >= timedelta(minutes=timeout_minutes)


def decide(
    snapshot: ConversationSnapshot,
    message: str,
    keywords: Iterable[str],
    timeout_minutes: int,
    ai_enabled: bool,
    now: datetime,
) -> RoutingDecision:
    """Route one admitted message. Keyword > human hold > timeout reversion > AI."""
    keyword = match_keyword(message, keywords)
    if keyword is not None:
        return RoutingDecision(
            action=RoutingAction.HANDOVER,
            next_state=ControlState.HUMAN_CONTROLLED,
            matched_keyword=keyword,
        )

    reverted = False
    if current_state(snapshot) == ControlState.HUMAN_CONTROLLED:
        if not is_timed_out(snapshot.last_human_interaction_at, timeout_minutes, now):
            return RoutingDecision(action=RoutingAction.HUMAN_HOLD, next_state=ControlState.HUMAN_CONTROLLED)
        reverted = True

    action = RoutingAction.AI_REPLY if ai_enabled else RoutingAction.SILENT_DROP
    return RoutingDecision(action=action, next_state=ControlState.AI_CONTROLLED, reverted_from_human=reverted)
