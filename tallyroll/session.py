"""
Calculator Session

This module ties together the ledger engine, the calculator state machine,
audit logging and snapshot storage for one user session.

DESIGN DECISION: The session is an explicit object with injected rendering
listeners, never a module-level instance bound to a UI. It enforces the
boundaries:
- Every operation runs to completion before listeners see the result
- Rejected operations change nothing and are reported, never raised
- Every ledger mutation is audited
- Persistence is a snapshot written after each change, not a journal
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional, Union
from uuid import UUID

from tallyroll.audit import AuditLogger, configure_logging
from tallyroll.calculator.formatting import (
    format_amount,
    format_ledger_line,
    format_primary,
    format_secondary,
)
from tallyroll.calculator.keys import KeyAction, resolve_key
from tallyroll.calculator.state_machine import (
    CalculatorError,
    CalculatorStateMachine,
    DivideByZeroError,
)
from tallyroll.config import Settings, get_settings
from tallyroll.ledger import InvalidValueError, LedgerEngine, LedgerError
from tallyroll.models.ledger import DisplayMode, Operation, Operator
from tallyroll.models.snapshot import Snapshot, SnapshotSource, load_snapshot
from tallyroll.models.view import DisplayView
from tallyroll.services.storage import (
    AuditStorageInterface,
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
)


class SessionListener(ABC):
    """
    Rendering collaborator.

    A UI implements this and registers with CalculatorSession.add_listener().
    """

    @abstractmethod
    def on_render(self, view: DisplayView) -> None:
        """Called after every successful state change."""
        pass

    @abstractmethod
    def on_error(self, message: str, error: Exception) -> None:
        """Called when an operation was rejected; message is user-facing."""
        pass


class CalculatorSession:
    """
    One calculator session: a ledger, the state machine that writes to it,
    and the collaborators that observe it.

    Flow:
    1. UI forwards a key press (or an entry edit/delete)
    2. State machine interprets it, committing Add/Subtract to the ledger
    3. New ledger entries are audited
    4. Snapshot is saved (if storage is configured)
    5. Listeners receive a fresh DisplayView
    """

    def __init__(
        self,
        ledger: Optional[LedgerEngine] = None,
        machine: Optional[CalculatorStateMachine] = None,
        snapshot_storage: Optional[SnapshotStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        if machine is not None:
            self._ledger = machine.ledger
        else:
            self._ledger = ledger or LedgerEngine(self._settings.ledger.rounding_places)
        self._machine = machine or CalculatorStateMachine(
            self._ledger,
            rounding_places=self._settings.ledger.rounding_places,
        )
        self._snapshot_storage = snapshot_storage
        self._audit_logger = audit_logger or AuditLogger()
        self._listeners: list[SessionListener] = []

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------

    @property
    def ledger(self) -> LedgerEngine:
        return self._ledger

    @property
    def machine(self) -> CalculatorStateMachine:
        return self._machine

    @property
    def session_id(self) -> UUID:
        return self._audit_logger.correlation_id

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        self._listeners.remove(listener)

    # -------------------------------------------------------------------------
    # Key presses
    # -------------------------------------------------------------------------

    def press(self, key: str) -> bool:
        """
        Handle a key or on-screen action name.

        Returns False for unknown keys and rejected operations.
        """
        resolved = resolve_key(key)
        if resolved is None:
            return False

        if resolved.action is KeyAction.DIGIT:
            return self.input_digit(resolved.digit)
        if resolved.action is KeyAction.OPERATOR:
            return self.set_operator(resolved.operator)
        if resolved.action is KeyAction.CLEAR:
            return self.press_clear()

        handlers = {
            KeyAction.DECIMAL: self.input_decimal_point,
            KeyAction.EQUALS: self.equals,
            KeyAction.SIGN: self.toggle_sign,
            KeyAction.PERCENT: self.input_percent,
            KeyAction.BACKSPACE: self.backspace,
        }
        return handlers[resolved.action]()

    def input_digit(self, digit: str) -> bool:
        return self._apply("input_digit", lambda: self._machine.input_digit(digit))

    def input_decimal_point(self) -> bool:
        return self._apply("input_decimal_point", self._machine.input_decimal_point)

    def toggle_sign(self) -> bool:
        return self._apply("toggle_sign", self._machine.toggle_sign)

    def input_percent(self) -> bool:
        return self._apply("input_percent", self._machine.input_percent)

    def backspace(self) -> bool:
        return self._apply("backspace", self._machine.backspace)

    def set_operator(self, operator: Union[Operator, str]) -> bool:
        return self._apply("set_operator", lambda: self._machine.set_operator(operator))

    def equals(self) -> bool:
        return self._apply("equals", self._machine.equals)

    def clear(self, full_reset: bool) -> bool:
        return self._apply("clear", lambda: self._machine.clear(full_reset))

    def press_clear(self) -> bool:
        """The AC/C key; see CalculatorStateMachine.press_clear()."""
        return self._apply("press_clear", self._machine.press_clear)

    def toggle_display_mode(self) -> bool:
        return self._apply("toggle_display_mode", self._machine.toggle_display_mode)

    def set_display_mode(self, mode: Union[DisplayMode, str]) -> bool:
        return self._apply("set_display_mode", lambda: self._machine.set_display_mode(mode))

    # -------------------------------------------------------------------------
    # Ledger edits
    # -------------------------------------------------------------------------

    def edit_entry(self, entry_id: str, value: Union[float, str]) -> bool:
        """
        Change a committed entry's value; totals after it are re-derived.

        value may be the raw text of an edit field.
        """
        try:
            number = _coerce_number(value)
            old_value = self._ledger.get(entry_id).value
            edited = self._ledger.edit(entry_id, number)
        except LedgerError as e:
            return self._reject("edit_entry", e, str(entry_id))

        self._audit_logger.log_entry_edited(
            entry_id=edited.id,
            old_value=old_value,
            new_value=edited.value,
            total=self._ledger.total(),
        )
        self._after_change()
        return True

    def delete_entry(self, entry_id: str) -> bool:
        try:
            removed = self._ledger.remove(entry_id)
        except LedgerError as e:
            return self._reject("delete_entry", e, str(entry_id))

        self._audit_logger.log_entry_deleted(removed, total=self._ledger.total())
        self._after_change()
        return True

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def entries(self) -> tuple[Operation, ...]:
        return self._ledger.entries()

    def total(self) -> float:
        return self._ledger.total()

    def view(self) -> DisplayView:
        """Formatted view of the whole session."""
        state = self._machine.state
        display = self._settings.display
        total = self._ledger.total()
        return DisplayView(
            primary=format_primary(state, display),
            secondary=format_secondary(state, display),
            clear_label=self._machine.clear_label,
            current_entry=state.current_entry,
            display_mode=state.display_mode,
            lines=[
                format_ledger_line(op, state.display_mode, display)
                for op in self._ledger.entries()
            ],
            total=total,
            total_text=format_amount(total, state.display_mode, display),
        )

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        return Snapshot.from_components(self._machine.state, self._ledger.entries())

    def restore(self, snapshot: Snapshot) -> None:
        """
        Replace the session's state with a snapshot.

        Raises:
            LedgerError: If the snapshot's ledger cannot be restored
        """
        self._ledger.restore(snapshot.operation_history)
        self._machine.restore(snapshot.calculator_state())

    def load(self) -> Optional[SnapshotSource]:
        """
        Rehydrate from snapshot storage.

        Returns the schema the snapshot was read from, or None when storage
        is missing or holds nothing.
        """
        if self._snapshot_storage is None:
            return None
        raw = self._snapshot_storage.load()
        if raw is None:
            return None

        result = load_snapshot(raw)
        try:
            self.restore(result.snapshot)
        except LedgerError as e:
            self._audit_logger.log_rejected("load", e)
            self.restore(Snapshot())
            result = result.model_copy(update={"source": SnapshotSource.DEFAULT})

        if result.source is SnapshotSource.LEGACY:
            self._audit_logger.log_legacy_snapshot_discarded()
        self._audit_logger.log_snapshot_loaded(
            source=result.source.value,
            entry_count=len(self._ledger),
            dropped_fields=result.dropped_fields,
        )
        self._render()
        return result.source

    def save(self) -> bool:
        """Write a snapshot. Failures are audited and reported, not raised."""
        if self._snapshot_storage is None:
            return False
        try:
            self._snapshot_storage.save(self.snapshot().to_wire())
        except StorageError as e:
            self._audit_logger.log_snapshot_save_failed(str(e))
            return False
        self._audit_logger.log_snapshot_saved(len(self._ledger))
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply(self, name: str, operation: Callable[[], object]) -> bool:
        """Run one state-machine operation; audit new entries and notify."""
        known = {op.id for op in self._ledger.entries()}
        try:
            operation()
        except DivideByZeroError as e:
            self._audit_logger.log_divide_by_zero(e.left_operand)
            self._notify_error(e.user_message, e)
            return False
        except CalculatorError as e:
            return self._reject(name, e)
        except LedgerError as e:
            return self._reject(name, e)

        if known and self._ledger.is_empty:
            self._audit_logger.log_ledger_cleared(len(known))
        for entry in self._ledger.entries():
            if entry.id not in known:
                self._audit_logger.log_entry_added(entry)
        self._after_change()
        return True

    def _reject(
        self,
        name: str,
        error: Exception,
        entity_id: Optional[str] = None,
    ) -> bool:
        self._audit_logger.log_rejected(name, error, entity_id=entity_id)
        self._notify_error(_user_message(error), error)
        return False

    def _after_change(self) -> None:
        if self._snapshot_storage is not None and self._settings.storage.autosave:
            self.save()
        self._render()

    def _render(self) -> None:
        if not self._listeners:
            return
        view = self.view()
        for listener in list(self._listeners):
            listener.on_render(view)

    def _notify_error(self, message: str, error: Exception) -> None:
        for listener in list(self._listeners):
            listener.on_error(message, error)


def _coerce_number(value: Union[float, str]) -> float:
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise InvalidValueError(f"Not a number: {value!r}") from None
    return value


def _user_message(error: Exception) -> str:
    if isinstance(error, CalculatorError):
        return error.user_message
    if isinstance(error, InvalidValueError):
        return "Enter a valid number"
    if isinstance(error, LedgerError):
        return "That entry no longer exists"
    return "Operation failed"


def create_session(
    snapshot_storage: Optional[SnapshotStorageInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    settings: Optional[Settings] = None,
    listeners: Iterable[SessionListener] = (),
) -> CalculatorSession:
    """
    Factory function to create a ready-to-use session.

    Args:
        snapshot_storage: Where snapshots live. If None and a snapshot path
                    is configured, a JSON file store is used.
        audit_storage: Optional audit event store.
        settings: Overrides the environment-derived settings.
        listeners: Rendering collaborators to register up front.

    Returns:
        A session, rehydrated from storage when a snapshot exists
    """
    settings = settings or get_settings()
    configure_logging(settings.app.effective_log_level, settings.app.log_json)

    if snapshot_storage is None and settings.storage.snapshot_path:
        snapshot_storage = JsonFileSnapshotStorage(
            settings.storage.snapshot_path,
            write_attempts=settings.storage.write_attempts,
        )

    session = CalculatorSession(
        snapshot_storage=snapshot_storage,
        audit_logger=AuditLogger(audit_storage),
        settings=settings,
    )
    for listener in listeners:
        session.add_listener(listener)

    session.load()
    return session
