"""CheckpointStore for persisting suspend points."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import Connection, select
from sqlalchemy.exc import SQLAlchemyError

from waypoint.contracts import (
    CheckpointLike,
    CheckpointScope,
    RecoverRecord,
    RecoverRecordLike,
    RecoverStatus,
    TransactionFailureError,
)
from waypoint.core.logging import get_logger
from waypoint.core.store._helpers import now
from waypoint.core.store.database import PersistenceDB
from waypoint.core.store.schema import checkpoints_table, recover_records_table


class CheckpointStore:
    """Persists one suspend event: N checkpoints plus its recovery record.

    A suspend point is only resumable if every checkpoint describing it
    exists, so the whole set is written in a single transaction:

        begin -> insert checkpoints -> insert record -> commit

    Any failure before commit rolls everything back, leaving no rows for
    the recover_id. Failures are surfaced, never retried here (a retry
    could double-write checkpoints).
    """

    def __init__(self, db: PersistenceDB, *, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        """Initialize with Waypoint database.

        Args:
            db: PersistenceDB holding the recovery tables
            logger: Bound logger; defaults to this module's logger
        """
        self._db = db
        self._log = logger if logger is not None else get_logger(__name__)

    def save_checkpoint_and_record(
        self,
        checkpoints: Sequence[CheckpointLike],
        record: RecoverRecordLike,
    ) -> RecoverRecord:
        """Atomically persist a suspend point.

        Args:
            checkpoints: Every checkpoint of this suspend event (may be empty)
            record: The recovery record for the event; must be IDLE

        Returns:
            The persisted RecoverRecord with store-assigned timestamps

        Raises:
            ValueError: If a checkpoint belongs to a different recover_id or
                root, or the record is not IDLE (caller bugs, nothing written)
            TransactionFailureError: If the write failed; nothing was persisted
        """
        self._validate(checkpoints, record)

        # One timestamp for the whole suspend event
        saved_at = now()
        checkpoint_rows = [self._checkpoint_row(cp, saved_at) for cp in checkpoints]
        persisted = RecoverRecord(
            root_uid=record.root_uid,
            recover_id=record.recover_id,
            status=RecoverStatus.IDLE,
            name=record.name,
            created_at=saved_at,
            updated_at=saved_at,
        )

        try:
            with self._db.engine.begin() as conn:
                self._insert_checkpoints(conn, checkpoint_rows)
                self._insert_record(conn, persisted)
                # begin() auto-commits on clean exit, auto-rollbacks on exception
        except SQLAlchemyError as exc:
            self._log.error(
                "Suspend point rolled back",
                recover_id=record.recover_id,
                root_uid=record.root_uid,
                error=str(exc),
            )
            raise TransactionFailureError(record.recover_id, str(exc)) from exc

        self._log.info(
            "Suspend point saved",
            recover_id=persisted.recover_id,
            root_uid=persisted.root_uid,
            checkpoints=len(checkpoint_rows),
        )
        return persisted

    def _validate(self, checkpoints: Sequence[CheckpointLike], record: RecoverRecordLike) -> None:
        if RecoverStatus(record.status) is not RecoverStatus.IDLE:
            raise ValueError(f"Recovery record '{record.recover_id}' must be saved as IDLE, got {RecoverStatus(record.status).name}")
        for cp in checkpoints:
            if cp.recover_id != record.recover_id:
                raise ValueError(f"Checkpoint '{cp.id}' has recover_id '{cp.recover_id}', expected '{record.recover_id}'")
            if cp.root_uid != record.root_uid:
                raise ValueError(f"Checkpoint '{cp.id}' has root_uid '{cp.root_uid}', expected '{record.root_uid}'")

    @staticmethod
    def _checkpoint_row(cp: CheckpointLike, saved_at: datetime) -> dict[str, Any]:
        return {
            "id": cp.id,
            "uid": cp.uid,
            "name": cp.name,
            "recover_id": cp.recover_id,
            "parent_uid": cp.parent_uid,
            "root_uid": cp.root_uid,
            "scope": CheckpointScope(cp.scope).value,
            "snapshot": cp.snapshot,
            "created_at": saved_at,
            "updated_at": saved_at,
        }

    def _insert_checkpoints(self, conn: Connection, rows: list[dict[str, Any]]) -> None:
        if not rows:
            return
        conn.execute(checkpoints_table.insert(), rows)

    def _insert_record(self, conn: Connection, record: RecoverRecord) -> None:
        """Insert the recovery record inside the open transaction.

        Checks the one-IDLE-record-per-root rule first for a precise error;
        the partial unique index enforces it regardless.

        Raises:
            TransactionFailureError: If the root already has an IDLE record
        """
        existing = conn.execute(
            select(recover_records_table.c.recover_id)
            .where(recover_records_table.c.root_uid == record.root_uid)
            .where(recover_records_table.c.status == RecoverStatus.IDLE.value)
        ).scalar_one_or_none()
        if existing is not None:
            raise TransactionFailureError(
                record.recover_id,
                f"root '{record.root_uid}' already has unconsumed recovery record '{existing}'",
            )

        conn.execute(
            recover_records_table.insert().values(
                recover_id=record.recover_id,
                root_uid=record.root_uid,
                status=record.status.value,
                name=record.name,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
        )
