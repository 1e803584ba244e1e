import threading
from unittest.mock import Mock

from sqlalchemy.dialects import postgresql

from linedesk.services.dedup_service import Admission, admit


def compile_pg(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


class FakeUniqueTable:
    """Session stand-in that enforces a unique event_id like the real table."""

    def __init__(self):
        self.event_ids = set()
        self.lock = threading.Lock()
        self.commits = 0

    def execute(self, stmt):
        event_id = stmt.compile(dialect=postgresql.dialect()).params["event_id"]
        with self.lock:
            inserted = event_id not in self.event_ids
            self.event_ids.add(event_id)
        return Mock(rowcount=1 if inserted else 0)

    def commit(self):
        self.commits += 1


class TestAdmit:
    def test_new_event_is_admitted(self):
        db = Mock()
        db.execute.return_value.rowcount = 1

        assert admit(db, "01HEVENT") == Admission.ADMITTED
        db.commit.assert_called_once()

    def test_rejected_insert_is_duplicate(self):
        db = Mock()
        db.execute.return_value.rowcount = 0

        assert admit(db, "01HEVENT") == Admission.DUPLICATE

    def test_uses_single_insert_on_conflict_do_nothing(self):
        db = Mock()
        db.execute.return_value.rowcount = 1

        admit(db, "01HEVENT")

        db.query.assert_not_called()
        assert db.execute.call_count == 1
        sql = compile_pg(db.execute.call_args[0][0])
        assert sql.startswith("INSERT INTO processed_events")
        assert "ON CONFLICT (event_id) DO NOTHING" in sql

    def test_second_admit_of_same_event_is_duplicate(self):
        db = FakeUniqueTable()

        assert admit(db, "evt-1") == Admission.ADMITTED
        assert admit(db, "evt-1") == Admission.DUPLICATE
        assert admit(db, "evt-2") == Admission.ADMITTED

    def test_concurrent_admits_admit_exactly_once(self):
        db = FakeUniqueTable()
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(admit(db, "evt-race"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(Admission.ADMITTED) == 1
        assert results.count(Admission.DUPLICATE) == 7
