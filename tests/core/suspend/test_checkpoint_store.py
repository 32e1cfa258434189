"""Tests for CheckpointStore atomic suspend-point persistence."""

from collections.abc import Callable
from typing import Any

import pytest
from sqlalchemy import Connection, func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from structlog.testing import capture_logs

from tests.helpers.entities import T0
from waypoint.contracts import (
    Checkpoint,
    CheckpointScope,
    RecoverRecord,
    RecoverStatus,
    TransactionFailureError,
)
from waypoint.core.store import PersistenceDB, checkpoints_table, recover_records_table
from waypoint.core.suspend import CheckpointStore, RecoveryCoordinator

CheckpointFactory = Callable[..., Checkpoint]
RecordFactory = Callable[..., RecoverRecord]


def _count(db: PersistenceDB, table: Any, recover_id: str) -> int:
    with db.engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(table).where(table.c.recover_id == recover_id)).scalar_one()


class TestSaveCheckpointAndRecord:
    """Happy-path persistence."""

    def test_saves_checkpoints_and_record(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        store = CheckpointStore(db)
        record = make_record("root-1", name="R1")
        checkpoints = [make_checkpoint(record.recover_id, "root-1") for _ in range(3)]

        persisted = store.save_checkpoint_and_record(checkpoints, record)

        assert persisted.status is RecoverStatus.IDLE
        assert persisted.recover_id == record.recover_id
        assert persisted.created_at is not None
        assert persisted.created_at == persisted.updated_at
        assert _count(db, checkpoints_table, record.recover_id) == 3
        assert _count(db, recover_records_table, record.recover_id) == 1

    def test_snapshot_bytes_round_trip(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        """Snapshots are opaque: every byte value comes back unchanged."""
        store = CheckpointStore(db)
        record = make_record("root-1")
        payloads = [bytes(range(256)), b"\x00\x00\xff", b"", None]
        checkpoints = [make_checkpoint(record.recover_id, "root-1", snapshot=p) for p in payloads]

        store.save_checkpoint_and_record(checkpoints, record)

        loaded = {cp.id: cp.snapshot for cp in RecoveryCoordinator(db).list_checkpoints(record.recover_id)}
        assert loaded == {cp.id: cp.snapshot for cp in checkpoints}

    def test_hierarchy_fields_preserved(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        store = CheckpointStore(db)
        record = make_record("root-1")
        root = make_checkpoint(record.recover_id, "root-1", scope=CheckpointScope.FLOW)
        proc = make_checkpoint(record.recover_id, "root-1", scope=CheckpointScope.PROCESS, parent_uid=root.uid)
        step = make_checkpoint(record.recover_id, "root-1", scope=CheckpointScope.STEP, parent_uid=proc.uid)

        store.save_checkpoint_and_record([root, proc, step], record)

        by_uid = {cp.uid: cp for cp in RecoveryCoordinator(db).list_checkpoints(record.recover_id)}
        assert by_uid[root.uid].scope is CheckpointScope.FLOW
        assert by_uid[root.uid].parent_uid is None
        assert by_uid[proc.uid].parent_uid == root.uid
        assert by_uid[step.uid].scope is CheckpointScope.STEP
        assert by_uid[step.uid].parent_uid == proc.uid

    def test_empty_checkpoint_list_saves_record_only(self, db: PersistenceDB, make_record: RecordFactory) -> None:
        store = CheckpointStore(db)
        record = make_record("root-1")

        store.save_checkpoint_and_record([], record)

        assert _count(db, recover_records_table, record.recover_id) == 1
        assert _count(db, checkpoints_table, record.recover_id) == 0

    def test_logs_without_snapshot_bytes(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        store = CheckpointStore(db)
        record = make_record("root-1")
        secret = b"do-not-log-me"

        with capture_logs() as logs:
            store.save_checkpoint_and_record([make_checkpoint(record.recover_id, "root-1", snapshot=secret)], record)

        saved = [entry for entry in logs if entry["event"] == "Suspend point saved"]
        assert saved[0]["checkpoints"] == 1
        assert all(secret not in repr(entry).encode() for entry in logs)


class TestAtomicity:
    """Checkpoints and record commit together or not at all."""

    def test_record_failure_rolls_back_checkpoints(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Failure after checkpoints are written leaves nothing behind."""
        store = CheckpointStore(db)
        record = make_record("root-1")
        checkpoints = [make_checkpoint(record.recover_id, "root-1") for _ in range(3)]

        def fail_insert_record(conn: Connection, persisted: RecoverRecord) -> None:
            raise OperationalError("INSERT INTO recover_records", {}, Exception("disk I/O error"))

        monkeypatch.setattr(store, "_insert_record", fail_insert_record)

        with pytest.raises(TransactionFailureError) as exc_info:
            store.save_checkpoint_and_record(checkpoints, record)

        assert exc_info.value.recover_id == record.recover_id
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert _count(db, checkpoints_table, record.recover_id) == 0
        assert _count(db, recover_records_table, record.recover_id) == 0

    def test_duplicate_recover_id_rolls_back_checkpoints(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        """A real constraint violation on the record insert."""
        store = CheckpointStore(db)
        first = make_record("root-1")
        store.save_checkpoint_and_record([], first)
        RecoveryCoordinator(db).update_record_status(first.consumed())

        clash = make_record("root-2", recover_id=first.recover_id)
        with pytest.raises(TransactionFailureError):
            store.save_checkpoint_and_record([make_checkpoint(clash.recover_id, "root-2")], clash)

        assert _count(db, checkpoints_table, first.recover_id) == 0
        with db.engine.connect() as conn:
            roots = conn.execute(select(recover_records_table.c.root_uid)).scalars().all()
        assert roots == ["root-1"]

    def test_duplicate_checkpoint_id_rolls_back_everything(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        store = CheckpointStore(db)
        record = make_record("root-1")
        cp = make_checkpoint(record.recover_id, "root-1")

        with pytest.raises(TransactionFailureError):
            store.save_checkpoint_and_record([cp, cp], record)

        assert _count(db, checkpoints_table, record.recover_id) == 0
        assert _count(db, recover_records_table, record.recover_id) == 0


class TestOneIdleRecordPerRoot:
    """A root never has two unconsumed suspend points."""

    def test_second_idle_record_is_rejected(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        store = CheckpointStore(db)
        store.save_checkpoint_and_record([], make_record("root-1"))
        second = make_record("root-1")

        with pytest.raises(TransactionFailureError, match="already has unconsumed"):
            store.save_checkpoint_and_record([make_checkpoint(second.recover_id, "root-1")], second)

        assert _count(db, checkpoints_table, second.recover_id) == 0
        assert _count(db, recover_records_table, second.recover_id) == 0

    def test_new_suspend_allowed_after_consume(self, db: PersistenceDB, make_record: RecordFactory) -> None:
        store = CheckpointStore(db)
        first = store.save_checkpoint_and_record([], make_record("root-1"))
        RecoveryCoordinator(db).update_record_status(first.consumed())

        second = store.save_checkpoint_and_record([], make_record("root-1"))

        assert RecoveryCoordinator(db).get_latest_record("root-1").recover_id == second.recover_id

    def test_unique_index_enforces_rule(self, db: PersistenceDB, make_record: RecordFactory) -> None:
        """The partial unique index rejects a second IDLE row even without the pre-check."""
        CheckpointStore(db).save_checkpoint_and_record([], make_record("root-1"))

        with pytest.raises(IntegrityError), db.connection() as conn:
            conn.execute(
                recover_records_table.insert().values(
                    recover_id="raw-insert",
                    root_uid="root-1",
                    status=RecoverStatus.IDLE.value,
                    name="dup",
                    created_at=T0,
                    updated_at=T0,
                )
            )


class TestValidation:
    """Caller bugs are rejected before anything is written."""

    def test_mismatched_recover_id(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        record = make_record("root-1")

        with pytest.raises(ValueError, match="recover_id"):
            CheckpointStore(db).save_checkpoint_and_record([make_checkpoint("other", "root-1")], record)

        assert _count(db, recover_records_table, record.recover_id) == 0

    def test_mismatched_root(
        self,
        db: PersistenceDB,
        make_checkpoint: CheckpointFactory,
        make_record: RecordFactory,
    ) -> None:
        record = make_record("root-1")

        with pytest.raises(ValueError, match="root_uid"):
            CheckpointStore(db).save_checkpoint_and_record([make_checkpoint(record.recover_id, "root-2")], record)

    def test_consumed_record_rejected(self, db: PersistenceDB, make_record: RecordFactory) -> None:
        record = make_record("root-1").consumed()

        with pytest.raises(ValueError, match="IDLE"):
            CheckpointStore(db).save_checkpoint_and_record([], record)
