from datetime import datetime, timezone
from unittest.mock import Mock

from sqlalchemy.dialects import postgresql

from linedesk.services.state_service import (
    clear_human_mode,
    fresh_state,
    get_state,
    reset_to_ai,
    upsert_handover,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def compiled(db) -> tuple[str, dict]:
    stmt = db.execute.call_args[0][0]
    result = stmt.compile(dialect=postgresql.dialect())
    return str(result), result.params


class TestGetState:
    def test_unknown_user_returns_fresh_state(self):
        db = Mock()
        db.query.return_value.filter.return_value.first.return_value = None

        state = get_state(db, "Unew")

        assert state == fresh_state("Unew")
        assert state.human_mode is False
        assert state.last_human_interaction_at is None
        assert state.exists is False

    def test_existing_row_is_mapped(self):
        db = Mock()
        row = Mock(
            line_user_id="U1",
            nickname="小明",
            is_human_mode=True,
            last_human_interaction=NOW,
            last_ai_reset_at=None,
        )
        db.query.return_value.filter.return_value.first.return_value = row

        state = get_state(db, "U1")

        assert state.human_mode is True
        assert state.nickname == "小明"
        assert state.last_human_interaction_at == NOW
        assert state.exists is True


class TestUpsertHandover:
    def test_upsert_sets_human_mode_and_timestamp(self):
        db = Mock()

        upsert_handover(db, "U1", "小明", NOW)

        sql, params = compiled(db)
        assert "INSERT INTO user_states" in sql
        assert "ON CONFLICT (line_user_id) DO UPDATE" in sql
        assert params["line_user_id"] == "U1"
        assert params["is_human_mode"] is True
        assert params["last_human_interaction"] == NOW
        assert params["nickname"] == "小明"
        db.commit.assert_called_once()

    def test_missing_nickname_keeps_stored_one(self):
        db = Mock()

        upsert_handover(db, "U1", None, NOW)

        sql, params = compiled(db)
        assert "nickname" not in params
        assert "nickname" not in sql


class TestClearHumanMode:
    def test_clears_flag_only(self):
        db = Mock()

        clear_human_mode(db, "U1")

        sql, params = compiled(db)
        assert "ON CONFLICT (line_user_id) DO UPDATE" in sql
        assert params["is_human_mode"] is False
        assert "last_human_interaction" not in sql
        db.commit.assert_called_once()


class TestResetToAi:
    def test_stamps_reset_time(self):
        db = Mock()

        reset_at = reset_to_ai(db, "U1", now=NOW)

        sql, params = compiled(db)
        assert reset_at == NOW
        assert params["is_human_mode"] is False
        assert params["last_ai_reset_at"] == NOW
        assert "last_ai_reset_at" in sql
