# src/waypoint/plugins/adapters.py
"""Hook implementations backed by the persistence components.

Each plugin is a thin forwarder: the engine-facing hook signature on one
side, a tracker/store/coordinator call on the other. Errors propagate to
the engine unchanged.
"""

from collections.abc import Mapping, Sequence

from waypoint.contracts import (
    Checkpoint,
    CheckpointLike,
    EntityKind,
    EntitySnapshot,
    ExecutionStatus,
    RecoverRecord,
    RecoverRecordLike,
)
from waypoint.core.suspend import CheckpointStore, RecoveryCoordinator
from waypoint.core.tracking import StatusTracker
from waypoint.plugins.hookspecs import hookimpl


class StatusPersistencePlugin:
    """Persists flow/process/step lifecycle transitions.

    Kinds without a tracker are ignored, so status tracking can be
    enabled for a subset of kinds.
    """

    def __init__(self, trackers: Mapping[EntityKind, StatusTracker]) -> None:
        self._trackers = dict(trackers)

    @property
    def kinds(self) -> frozenset[EntityKind]:
        return frozenset(self._trackers)

    @hookimpl
    def waypoint_insert_entity(self, kind: EntityKind, entity: EntitySnapshot) -> None:
        tracker = self._trackers.get(EntityKind(kind))
        if tracker is not None:
            tracker.insert(entity)

    @hookimpl
    def waypoint_update_entity(self, kind: EntityKind, entity: EntitySnapshot) -> ExecutionStatus | None:
        tracker = self._trackers.get(EntityKind(kind))
        if tracker is None:
            return None
        return tracker.update(entity)


class SuspendPersistencePlugin:
    """Persists suspend points and serves them back for recovery."""

    def __init__(self, store: CheckpointStore, coordinator: RecoveryCoordinator) -> None:
        self._store = store
        self._coordinator = coordinator

    @hookimpl
    def waypoint_save_checkpoints(self, checkpoints: Sequence[CheckpointLike], record: RecoverRecordLike) -> RecoverRecord:
        return self._store.save_checkpoint_and_record(checkpoints, record)

    @hookimpl
    def waypoint_get_latest_record(self, root_uid: str) -> RecoverRecord:
        return self._coordinator.get_latest_record(root_uid)

    @hookimpl
    def waypoint_list_checkpoints(self, recover_id: str) -> list[Checkpoint]:
        return self._coordinator.list_checkpoints(recover_id)

    @hookimpl
    def waypoint_update_record_status(self, record: RecoverRecordLike) -> None:
        self._coordinator.update_record_status(record)
