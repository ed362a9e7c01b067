"""
Tests for CalculatorSession

Sessions run against in-memory snapshot and audit storage; the
create_session tests use a JSON file under tmp_path.
"""

import logging

import pytest

from tallyroll.audit import AuditLogger
from tallyroll.config import AppSettings, Settings, StorageSettings
from tallyroll.models.audit import AuditEventType
from tallyroll.models.ledger import DisplayMode, Operation, OperationKind
from tallyroll.models.snapshot import SnapshotSource
from tallyroll.services.storage import (
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
    StorageError,
)
from tallyroll.session import CalculatorSession, SessionListener, create_session


class RecordingListener(SessionListener):
    """Collects everything the session reports."""

    def __init__(self):
        self.views = []
        self.errors = []

    def on_render(self, view):
        self.views.append(view)

    def on_error(self, message, error):
        self.errors.append((message, error))


class FailingSnapshotStorage(InMemorySnapshotStorage):
    def save(self, record):
        raise StorageError("quota exceeded")


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def snapshot_storage():
    return InMemorySnapshotStorage()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def session(snapshot_storage, audit_storage, listener):
    session = CalculatorSession(
        snapshot_storage=snapshot_storage,
        audit_logger=AuditLogger(audit_storage),
        settings=Settings(),
    )
    session.add_listener(listener)
    return session


def press_all(session, keys):
    return [session.press(key) for key in keys]


def event_types(audit_storage, session):
    return [
        e.event_type
        for e in audit_storage.get_events_by_correlation_id(session.session_id)
    ]


class TestKeyPresses:
    """Tests for key dispatch and rendering."""

    def test_addition_renders_tape(self, session, listener):
        """Test 5 + 3 = shows 8 with two tape lines."""
        assert all(press_all(session, ["5", "+", "3", "="]))

        view = listener.views[-1]
        assert view.primary == "8"
        assert view.secondary == ""
        assert view.total == 8
        assert [line.amount_text for line in view.lines] == ["+5", "+3"]
        assert [line.total_text for line in view.lines] == ["= 5", "= 8"]
        assert len(listener.views) == 4

    def test_secondary_shows_pending(self, session, listener):
        """Test the staged operand appears on the secondary line."""
        press_all(session, ["1", "2", "5", "0", "-"])
        assert listener.views[-1].secondary == "1,250 −"

    def test_unknown_key(self, session, listener):
        """Test unknown keys are ignored without rendering."""
        assert session.press("q") is False
        assert listener.views == []
        assert listener.errors == []

    def test_divide_by_zero(self, session, listener, audit_storage):
        """Test ÷ 0 reports an error and changes nothing."""
        press_all(session, ["1", "0", "/", "0"])
        views_before = len(listener.views)

        assert session.press("=") is False

        assert listener.errors[-1][0] == "Cannot divide by zero"
        assert len(listener.views) == views_before
        state = session.machine.state
        assert state.previous_value == 10
        assert state.current_entry == "0"
        assert AuditEventType.DIVIDE_BY_ZERO in event_types(audit_storage, session)

    def test_overflow_rejected(self, session, listener, audit_storage):
        """Test an out-of-range result is reported as a rejection."""
        press_all(session, ["9"] * 200 + ["*"] + ["9"] * 200)
        assert session.press("=") is False
        assert listener.errors[-1][0] == "Number too large"
        assert AuditEventType.OPERATION_REJECTED in event_types(audit_storage, session)

    def test_currency_display(self, session, listener):
        """Test currency mode formats the entry as dollars."""
        assert session.toggle_display_mode() is True
        press_all(session, ["5", "2", "5"])
        view = listener.views[-1]
        assert view.primary == "$5.25"
        assert view.display_mode is DisplayMode.CURRENCY

    def test_clear_label(self, session, listener):
        """Test AC/C label follows the state."""
        assert session.view().clear_label == "AC"
        session.press("5")
        assert listener.views[-1].clear_label == "C"

    def test_escape_clears_twice(self, session, audit_storage):
        """Test the first clear resets the entry, the second the ledger."""
        press_all(session, ["5", "+", "3"])
        session.press("Escape")
        assert session.machine.current_entry == "0"
        assert len(session.entries()) == 1

        session.press("Escape")
        assert session.entries() == ()
        assert session.total() == 0
        assert AuditEventType.LEDGER_CLEARED in event_types(audit_storage, session)

    def test_new_entries_audited(self, session, audit_storage):
        """Test every committed entry produces an audit event."""
        press_all(session, ["5", "+", "3", "+", "+"])
        added = [
            t for t in event_types(audit_storage, session)
            if t is AuditEventType.ENTRY_ADDED
        ]
        assert len(added) == 3


class TestLedgerEdits:
    """Tests for editing and deleting tape entries."""

    def test_edit_entry(self, session, listener, audit_storage):
        """Test an edit from raw text re-derives the total."""
        press_all(session, ["5", "+", "3", "="])
        first = session.entries()[0]

        assert session.edit_entry(str(first.id), " 10 ") is True

        assert session.total() == 13
        assert listener.views[-1].total == 13
        events = audit_storage.get_events_by_entity("entry", first.id)
        edited = [e for e in events if e.event_type is AuditEventType.ENTRY_EDITED]
        assert edited[0].details["old_value"] == 5
        assert edited[0].details["new_value"] == 10

    def test_edit_rejects_text(self, session, listener):
        """Test a non-numeric edit is reported and changes nothing."""
        press_all(session, ["5", "+", "3", "="])
        first = session.entries()[0]

        assert session.edit_entry(first.id, "abc") is False

        assert listener.errors[-1][0] == "Enter a valid number"
        assert session.total() == 8

    def test_edit_unknown_entry(self, session, listener):
        """Test editing a missing entry is reported."""
        assert session.edit_entry("missing", 3) is False
        assert listener.errors[-1][0] == "That entry no longer exists"

    def test_delete_entry(self, session, audit_storage):
        """Test deleting re-derives the total and is audited."""
        press_all(session, ["1", "0", "-", "3", "+", "7", "="])
        middle = session.entries()[1]
        assert middle.kind is OperationKind.SUBTRACT

        assert session.delete_entry(middle.id) is True

        assert [op.running_total for op in session.entries()] == [10, 17]
        assert session.total() == 17
        assert AuditEventType.ENTRY_DELETED in event_types(audit_storage, session)

    def test_delete_unknown_entry(self, session, listener, audit_storage):
        """Test deleting a missing entry is reported and audited."""
        assert session.delete_entry("missing") is False
        assert listener.errors[-1][0] == "That entry no longer exists"
        assert AuditEventType.OPERATION_REJECTED in event_types(audit_storage, session)


class TestPersistence:
    """Tests for snapshot save and load."""

    def test_autosave_after_change(self, session, snapshot_storage):
        """Test each successful operation writes a snapshot."""
        press_all(session, ["5", "+"])
        assert snapshot_storage.save_count == 2
        assert snapshot_storage.load()["operationHistory"][0]["value"] == 5

    def test_no_autosave_on_rejection(self, session, snapshot_storage):
        """Test rejected operations are not saved."""
        session.press("q")
        session.delete_entry("missing")
        assert snapshot_storage.save_count == 0

    def test_autosave_disabled(self, snapshot_storage):
        """Test the autosave setting."""
        settings = Settings(storage=StorageSettings(autosave=False))
        session = CalculatorSession(snapshot_storage=snapshot_storage, settings=settings)
        session.press("5")
        assert snapshot_storage.save_count == 0
        assert session.save() is True
        assert snapshot_storage.save_count == 1

    def test_reload_into_new_session(self, session, snapshot_storage):
        """Test a saved session restores ids, totals and pending state."""
        press_all(session, ["5", "+", "3", "-"])
        saved_ids = [op.id for op in session.entries()]

        restored = CalculatorSession(snapshot_storage=snapshot_storage, settings=Settings())
        assert restored.load() is SnapshotSource.CURRENT

        assert [op.id for op in restored.entries()] == saved_ids
        assert restored.total() == 8
        assert restored.machine.state.previous_value == 8

    def test_load_opaque_ids(self, audit_storage):
        """Test entries saved with non-UUID ids reload and stay deletable."""
        record = {
            "currentEntry": "0",
            "operationHistory": [
                {"id": "op_1", "kind": "Add", "value": 10, "createdAt": 1, "runningTotal": 10},
                {"id": "op_2", "kind": "Add", "value": 7, "createdAt": 2, "runningTotal": 17},
            ],
        }
        session = CalculatorSession(
            snapshot_storage=InMemorySnapshotStorage(record),
            audit_logger=AuditLogger(audit_storage),
            settings=Settings(),
        )

        assert session.load() is SnapshotSource.CURRENT
        assert session.total() == 17
        assert session.delete_entry("op_1") is True
        assert session.total() == 7
        events = audit_storage.get_events_by_entity("entry", "op_1")
        assert events[-1].event_type is AuditEventType.ENTRY_DELETED

    def test_load_legacy(self, audit_storage, listener):
        """Test a legacy snapshot starts an empty ledger and is audited."""
        session = CalculatorSession(
            snapshot_storage=InMemorySnapshotStorage({"addedNumbers": [1, 2], "currentEntry": "4"}),
            audit_logger=AuditLogger(audit_storage),
            settings=Settings(),
        )
        session.add_listener(listener)

        assert session.load() is SnapshotSource.LEGACY
        assert session.entries() == ()
        assert session.machine.current_entry == "4"
        assert listener.views[-1].primary == "4"
        assert AuditEventType.LEGACY_SNAPSHOT_DISCARDED in event_types(audit_storage, session)

    def test_load_unrestorable_history(self, audit_storage):
        """Test a history whose totals overflow falls back to defaults."""
        record = {
            "currentEntry": "5",
            "operationHistory": [
                Operation(kind=OperationKind.ADD, value=1e308, created_at=1).model_dump(
                    mode="json", by_alias=True
                ),
                Operation(kind=OperationKind.ADD, value=1e308, created_at=2).model_dump(
                    mode="json", by_alias=True
                ),
            ],
        }
        session = CalculatorSession(
            snapshot_storage=InMemorySnapshotStorage(record),
            audit_logger=AuditLogger(audit_storage),
            settings=Settings(),
        )

        assert session.load() is SnapshotSource.DEFAULT
        assert session.entries() == ()
        assert session.machine.current_entry == "0"

    def test_load_without_storage(self):
        """Test a session without storage has nothing to load."""
        session = CalculatorSession(settings=Settings())
        assert session.load() is None
        assert session.save() is False

    def test_save_failure_is_reported(self, audit_storage, listener):
        """Test a failing store does not break key presses."""
        session = CalculatorSession(
            snapshot_storage=FailingSnapshotStorage(),
            audit_logger=AuditLogger(audit_storage),
            settings=Settings(),
        )
        session.add_listener(listener)

        assert session.press("5") is True
        assert listener.views[-1].primary == "5"
        assert AuditEventType.SNAPSHOT_SAVE_FAILED in event_types(audit_storage, session)


class TestAuditLogger:
    """Tests for AuditLogger and the in-memory audit store."""

    def test_events_carry_session_id(self, session, audit_storage):
        """Test every event of a session shares its correlation id."""
        press_all(session, ["5", "+", "3", "="])
        recent = audit_storage.get_recent_events(limit=2)
        assert len(recent) == 2
        assert all(e.correlation_id == session.session_id for e in recent)

    def test_recent_events_newest_first(self, session, audit_storage):
        """Test recency ordering."""
        press_all(session, ["5", "+"])
        session.delete_entry(session.entries()[0].id)
        assert audit_storage.get_recent_events(limit=1)[0].event_type is AuditEventType.SNAPSHOT_SAVED
        types = [e.event_type for e in audit_storage.get_recent_events()]
        assert types.index(AuditEventType.ENTRY_DELETED) < types.index(AuditEventType.ENTRY_ADDED)

    def test_storage_failure_is_not_raised(self):
        """Test a broken audit store only makes log() return False."""

        class BrokenAuditStorage(InMemoryAuditStorage):
            def append_event(self, event):
                raise RuntimeError("store offline")

        session = CalculatorSession(
            audit_logger=AuditLogger(BrokenAuditStorage()),
            settings=Settings(),
        )
        press_all(session, ["5", "+", "3", "="])
        assert session.total() == 8


class TestCreateSession:
    """Tests for the create_session factory."""

    def test_file_backed_session(self, tmp_path):
        """Test a configured snapshot path persists across sessions."""
        settings = Settings(
            storage=StorageSettings(snapshot_path=str(tmp_path / "tally.json"))
        )
        first = create_session(settings=settings)
        for key in ["5", "+", "3", "="]:
            first.press(key)
        assert (tmp_path / "tally.json").exists()

        listener = RecordingListener()
        second = create_session(settings=settings, listeners=[listener])

        assert second.total() == 8
        assert len(second.entries()) == 2
        assert listener.views[-1].primary == "8"

    def test_debug_mode_configures_logging(self):
        """Test debug mode lowers the package log level."""
        create_session(settings=Settings(app=AppSettings(debug_mode=True, log_json=False)))
        assert logging.getLogger("tallyroll").level == logging.DEBUG

        create_session(settings=Settings(app=AppSettings(log_level="WARNING")))
        assert logging.getLogger("tallyroll").level == logging.WARNING

    def test_in_memory_session(self):
        """Test no snapshot path means no persistence."""
        session = create_session(settings=Settings())
        assert session.press("5") is True
        assert session.save() is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
