# tests/property/test_status_properties.py
"""Property-based tests for status tracking.

Status Properties:
- Insert followed by any number of updates never changes name or created_at
- The persisted status is SUSPEND whenever the suspended flag is set
- A row that reaches SUCCESS or FAILURE never leaves it

Suspend Properties:
- Any set of snapshot payloads round-trips byte-for-byte
"""

from datetime import UTC, datetime
from uuid import uuid4

from hypothesis import given
from hypothesis import strategies as st

from tests.helpers.entities import T0, FakeEntity
from waypoint.contracts import (
    Checkpoint,
    CheckpointScope,
    EntityKind,
    ExecutionStatus,
    RecoverRecord,
    RecoverStatus,
    StatusTransitionError,
)
from waypoint.core.store import PersistenceDB
from waypoint.core.suspend import CheckpointStore, RecoveryCoordinator
from waypoint.core.tracking import StatusTracker

# =============================================================================
# Strategies
# =============================================================================

# (success, suspended, has_end_time) for one engine callback
outcomes = st.tuples(st.booleans(), st.booleans(), st.booleans())

names = st.text(
    min_size=1,
    max_size=50,
    alphabet=st.characters(blacklist_categories=("Cs", "Cc")),
)

end_times = st.datetimes(
    min_value=datetime(2024, 5, 2),
    max_value=datetime(2030, 1, 1),
    timezones=st.just(UTC),
)

snapshots = st.one_of(st.none(), st.binary(max_size=512))


class TestStatusProperties:
    """Invariants of the flow/process/step lifecycle."""

    @given(name=names, updates=st.lists(outcomes, min_size=1, max_size=8), end_time=end_times)
    def test_identity_fields_never_change(
        self,
        name: str,
        updates: list[tuple[bool, bool, bool]],
        end_time: datetime,
    ) -> None:
        db = PersistenceDB.in_memory()
        tracker = StatusTracker(db, EntityKind.FLOW)
        flow = FakeEntity(id=str(uuid4()), name=name, start_time=T0)
        tracker.insert(flow)

        for success, suspended, has_end in updates:
            flow.name = f"{name}-changed"
            flow.success = success
            flow.suspended = suspended
            flow.end_time = end_time if has_end else None
            try:
                tracker.update(flow)
            except StatusTransitionError:
                pass

        record = tracker.get(flow.id)
        assert record.name == name
        assert record.created_at == T0
        db.close()

    @given(success=st.booleans(), end_time=st.one_of(st.none(), end_times))
    def test_suspended_flag_always_persists_suspend(self, success: bool, end_time: datetime | None) -> None:
        db = PersistenceDB.in_memory()
        tracker = StatusTracker(db, EntityKind.STEP)
        step = FakeEntity(id=str(uuid4()), name="step", start_time=T0, flow_id="f", process_id="p")
        tracker.insert(step)

        step.suspended = True
        step.success = success
        step.end_time = end_time

        assert tracker.update(step) is ExecutionStatus.SUSPEND
        assert tracker.get(step.id).status is ExecutionStatus.SUSPEND
        db.close()

    @given(updates=st.lists(outcomes, min_size=1, max_size=8))
    def test_terminal_status_is_absorbing(self, updates: list[tuple[bool, bool, bool]]) -> None:
        db = PersistenceDB.in_memory()
        tracker = StatusTracker(db, EntityKind.PROCESS)
        process = FakeEntity(id=str(uuid4()), name="proc", start_time=T0, flow_id="f")
        tracker.insert(process)

        first_terminal: ExecutionStatus | None = None
        for success, suspended, _ in updates:
            process.success = success
            process.suspended = suspended
            try:
                status = tracker.update(process)
            except StatusTransitionError:
                assert first_terminal is not None
                continue
            assert first_terminal is None
            if status.is_terminal:
                first_terminal = status

        if first_terminal is not None:
            assert tracker.get(process.id).status is first_terminal
        db.close()


class TestSuspendProperties:
    """Invariants of suspend-point persistence."""

    @given(payloads=st.lists(snapshots, max_size=6))
    def test_snapshots_round_trip_exactly(self, payloads: list[bytes | None]) -> None:
        db = PersistenceDB.in_memory()
        record = RecoverRecord(root_uid="root", recover_id=str(uuid4()), status=RecoverStatus.IDLE, name="r")
        checkpoints = [
            Checkpoint(
                id=str(uuid4()),
                uid=str(uuid4()),
                name="cp",
                recover_id=record.recover_id,
                parent_uid=None,
                root_uid="root",
                scope=CheckpointScope.STEP,
                snapshot=payload,
            )
            for payload in payloads
        ]

        CheckpointStore(db).save_checkpoint_and_record(checkpoints, record)

        loaded = {cp.id: cp.snapshot for cp in RecoveryCoordinator(db).list_checkpoints(record.recover_id)}
        assert loaded == {cp.id: cp.snapshot for cp in checkpoints}
        db.close()
