from datetime import datetime, timedelta, timezone

from linedesk.services.state_machine import (
    ControlState,
    RoutingAction,
    current_state,
    decide,
    is_timed_out,
)
from linedesk.services.state_service import ConversationSnapshot, fresh_state

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
KEYWORDS = ("真人", "客服")


def human_snapshot(minutes_ago: float) -> ConversationSnapshot:
    return ConversationSnapshot(
        user_id="U1",
        nickname="小明",
        human_mode=True,
        last_human_interaction_at=NOW - timedelta(minutes=minutes_ago),
        exists=True,
    )


class TestIsTimedOut:
    def test_within_timeout(self):
        assert is_timed_out(NOW - timedelta(minutes=29), 30, NOW) is False

    def test_after_timeout(self):
        assert is_timed_out(NOW - timedelta(minutes=31), 30, NOW) is True

    def test_exact_boundary_counts_as_expired(self):
        assert is_timed_out(NOW - timedelta(minutes=30), 30, NOW) is True

    def test_missing_timestamp_counts_as_expired(self):
        assert is_timed_out(None, 30, NOW) is True

    def test_naive_timestamp_treated_as_utc(self):
        naive = (NOW - timedelta(minutes=5)).replace(tzinfo=None)
        assert is_timed_out(naive, 30, NOW) is False


class TestCurrentState:
    def test_fresh_user_is_ai_controlled(self):
        assert current_state(fresh_state("U1")) == ControlState.AI_CONTROLLED

    def test_human_mode(self):
        assert current_state(human_snapshot(1)) == ControlState.HUMAN_CONTROLLED


class TestDecide:
    def test_keyword_hit_from_ai_mode(self):
        decision = decide(fresh_state("U1"), "我要找真人", KEYWORDS, 30, True, NOW)
        assert decision.action == RoutingAction.HANDOVER
        assert decision.next_state == ControlState.HUMAN_CONTROLLED
        assert decision.matched_keyword == "真人"

    def test_keyword_hit_while_human_controlled_retriggers(self):
        decision = decide(human_snapshot(5), "客服還在嗎", KEYWORDS, 30, True, NOW)
        assert decision.action == RoutingAction.HANDOVER
        assert decision.matched_keyword == "客服"

    def test_keyword_hit_even_when_ai_disabled(self):
        decision = decide(fresh_state("U1"), "真人", KEYWORDS, 30, False, NOW)
        assert decision.action == RoutingAction.HANDOVER

    def test_human_hold_before_timeout(self):
        decision = decide(human_snapshot(29), "請問進度", KEYWORDS, 30, True, NOW)
        assert decision.action == RoutingAction.HUMAN_HOLD
        assert decision.next_state == ControlState.HUMAN_CONTROLLED

    def test_timeout_reverts_and_answers_same_message(self):
        decision = decide(human_snapshot(31), "請問進度", KEYWORDS, 30, True, NOW)
        assert decision.action == RoutingAction.AI_REPLY
        assert decision.next_state == ControlState.AI_CONTROLLED
        assert decision.reverted_from_human is True

    def test_timeout_with_ai_disabled_reverts_then_drops(self):
        decision = decide(human_snapshot(31), "請問進度", KEYWORDS, 30, False, NOW)
        assert decision.action == RoutingAction.SILENT_DROP
        assert decision.reverted_from_human is True

    def test_ai_mode_with_ai_enabled(self):
        decision = decide(fresh_state("U1"), "營業時間?", KEYWORDS, 30, True, NOW)
        assert decision.action == RoutingAction.AI_REPLY
        assert decision.reverted_from_human is False

    def test_ai_mode_with_ai_disabled_drops(self):
        decision = decide(fresh_state("U1"), "營業時間?", KEYWORDS, 30, False, NOW)
        assert decision.action == RoutingAction.SILENT_DROP
        assert decision.reverted_from_human is False
