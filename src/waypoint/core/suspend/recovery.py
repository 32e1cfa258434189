"""Recovery protocol for resuming suspended executions.

Provides the API the engine uses to resume a root execution:
- get_latest_record(root_uid) - The single IDLE record for the root
- list_checkpoints(recover_id) - Every checkpoint of that suspend event
- update_record_status(record) - Mark the record CONSUMED after rehydration

The Idle -> Consumed flip is a conditional update, so of two concurrent
recoveries of the same root exactly one can consume the record; the other
gets RecoveryConflictError instead of silently replaying the suspend point
a second time.
"""

from dataclasses import replace
from datetime import datetime

import structlog
from sqlalchemy import Connection, desc, select, update

from waypoint.contracts import (
    Checkpoint,
    RecordNotFoundError,
    RecoverRecord,
    RecoverRecordLike,
    RecoverStatus,
    RecoveryConflictError,
    ResumePoint,
    StatusTransitionError,
)
from waypoint.core.logging import get_logger
from waypoint.core.store._helpers import now
from waypoint.core.store.database import PersistenceDB
from waypoint.core.store.repositories import CheckpointRepository, RecoverRecordRepository
from waypoint.core.store.schema import checkpoints_table, recover_records_table

__all__ = [
    "RecoveryCoordinator",
    "ResumePoint",  # Re-exported from contracts for convenience
]


class RecoveryCoordinator:
    """Finds and consumes recovery records.

    Recovery protocol:
    1. get_latest_record(root) - RecordNotFoundError means nothing to recover
    2. list_checkpoints(record.recover_id) - engine rehydrates from these
    3. update_record_status(record.consumed()) - claim; only one caller wins

    Usage:
        coordinator = RecoveryCoordinator(db)

        resume_point = coordinator.get_resume_point(root_uid)
        if resume_point is not None:
            engine.rehydrate(resume_point.checkpoints)
            coordinator.update_record_status(resume_point.record.consumed())
    """

    def __init__(self, db: PersistenceDB, *, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        """Initialize with Waypoint database.

        Args:
            db: PersistenceDB holding the recovery tables
            logger: Bound logger; defaults to this module's logger
        """
        self._db = db
        self._log = logger if logger is not None else get_logger(__name__)
        self._records = RecoverRecordRepository()
        self._checkpoints = CheckpointRepository()

    def get_latest_record(self, root_uid: str) -> RecoverRecord:
        """Get the unconsumed recovery record for a root execution.

        Args:
            root_uid: Root execution unit id

        Returns:
            The IDLE RecoverRecord for the root

        Raises:
            RecordNotFoundError: If the root has no IDLE record (nothing to recover)
        """
        with self._db.engine.connect() as conn:
            record = self._select_idle(conn, root_uid)

        if record is None:
            raise RecordNotFoundError("idle recovery record", root_uid)
        return record

    def list_checkpoints(self, recover_id: str) -> list[Checkpoint]:
        """Get every checkpoint saved under a recover_id.

        No ordering guarantee: the engine rebuilds the hierarchy from
        parent_uid / root_uid / scope.

        Args:
            recover_id: Suspend event to load

        Returns:
            List of Checkpoints, empty if none were saved
        """
        with self._db.engine.connect() as conn:
            rows = conn.execute(select(checkpoints_table).where(checkpoints_table.c.recover_id == recover_id)).fetchall()

        return [self._checkpoints.load(row) for row in rows]

    def update_record_status(self, record: RecoverRecordLike) -> None:
        """Apply record.status to the stored record.

        Only IDLE -> CONSUMED is legal. The update is conditional on the
        stored row still being IDLE, which makes it the claim step.

        Args:
            record: Record carrying the target status (see RecoverRecord.consumed())

        Raises:
            StatusTransitionError: If the target status is IDLE
            RecordNotFoundError: If no record exists for record.recover_id
            RecoveryConflictError: If the record was already consumed
        """
        target = RecoverStatus(record.status)
        if target is RecoverStatus.IDLE:
            raise StatusTransitionError("recovery record", record.recover_id, "*", target)

        with self._db.connection() as conn:
            self._consume(conn, record.recover_id)

        self._log.info("Recovery record consumed", recover_id=record.recover_id, root_uid=record.root_uid)

    def claim_latest_record(self, root_uid: str) -> RecoverRecord:
        """Select and consume the root's IDLE record in one transaction.

        For engines that claim before rehydrating. A failed rehydration
        after a claim is not reverted here.

        Returns:
            The claimed record, already CONSUMED

        Raises:
            RecordNotFoundError: If the root has no IDLE record
            RecoveryConflictError: If a concurrent caller claimed it first
        """
        with self._db.connection() as conn:
            record = self._select_idle(conn, root_uid)
            if record is None:
                raise RecordNotFoundError("idle recovery record", root_uid)
            consumed_at = self._consume(conn, record.recover_id)

        self._log.info("Recovery record claimed", recover_id=record.recover_id, root_uid=root_uid)
        return replace(record.consumed(), updated_at=consumed_at)

    def get_resume_point(self, root_uid: str) -> ResumePoint | None:
        """Get the record and checkpoints needed to resume a root.

        Does not consume the record.

        Returns:
            ResumePoint, or None if there is nothing to recover
        """
        try:
            record = self.get_latest_record(root_uid)
        except RecordNotFoundError:
            return None

        return ResumePoint(record=record, checkpoints=tuple(self.list_checkpoints(record.recover_id)))

    def _select_idle(self, conn: Connection, root_uid: str) -> RecoverRecord | None:
        row = conn.execute(
            select(recover_records_table)
            .where(recover_records_table.c.root_uid == root_uid)
            .where(recover_records_table.c.status == RecoverStatus.IDLE.value)
            .order_by(desc(recover_records_table.c.created_at))
            .limit(1)
        ).fetchone()

        if row is None:
            return None
        return self._records.load(row)

    def _consume(self, conn: Connection, recover_id: str) -> datetime:
        consumed_at = now()
        result = conn.execute(
            update(recover_records_table)
            .where(recover_records_table.c.recover_id == recover_id)
            .where(recover_records_table.c.status == RecoverStatus.IDLE.value)
            .values(status=RecoverStatus.CONSUMED.value, updated_at=consumed_at)
        )
        if result.rowcount == 1:
            return consumed_at

        exists = conn.execute(
            select(recover_records_table.c.recover_id).where(recover_records_table.c.recover_id == recover_id)
        ).scalar_one_or_none()
        if exists is None:
            raise RecordNotFoundError("recovery record", recover_id)
        self._log.warning("Recovery record already consumed", recover_id=recover_id)
        raise RecoveryConflictError(recover_id)
