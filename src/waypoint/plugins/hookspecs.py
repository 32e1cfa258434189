# src/waypoint/plugins/hookspecs.py
"""pluggy hook specifications for engine registration.

The execution engine calls these hooks at lifecycle transitions and at
suspend/recover time. The persistence adapter implements them.

Usage (implementing a plugin):
    from waypoint.plugins.hookspecs import hookimpl

    class MyPlugin:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def waypoint_insert_entity(self, kind, entity):
            ...

Note: @hookspec defines the hook interface (done here).
      @hookimpl marks plugin implementations of those hooks.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from waypoint.contracts import (
        Checkpoint,
        CheckpointLike,
        EntityKind,
        EntitySnapshot,
        ExecutionStatus,
        RecoverRecord,
        RecoverRecordLike,
    )

# Project name for pluggy
PROJECT_NAME = "waypoint"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class WaypointLifecycleSpec:
    """Hook specifications for flow/process/step lifecycle callbacks."""

    @hookspec
    def waypoint_insert_entity(self, kind: "EntityKind", entity: "EntitySnapshot") -> None:
        """Called when an execution unit starts.

        Args:
            kind: Which entity kind started
            entity: Engine-side snapshot of the unit
        """

    @hookspec
    def waypoint_update_entity(self, kind: "EntityKind", entity: "EntitySnapshot") -> "ExecutionStatus | None":
        """Called when an execution unit finishes or suspends.

        Args:
            kind: Which entity kind changed
            entity: Engine-side snapshot of the unit

        Returns:
            The status that was written, or None if this plugin ignores the kind
        """


class WaypointSuspendSpec:
    """Hook specifications for suspend persistence."""

    @hookspec
    def waypoint_save_checkpoints(
        self,
        checkpoints: Sequence["CheckpointLike"],
        record: "RecoverRecordLike",
    ) -> "RecoverRecord":  # type: ignore[empty-body]
        """Atomically persist a suspend point.

        Returns:
            The persisted recovery record
        """

    @hookspec(firstresult=True)
    def waypoint_get_latest_record(self, root_uid: str) -> "RecoverRecord":  # type: ignore[empty-body]
        """Return the unconsumed recovery record for a root.

        Raises:
            RecordNotFoundError: If the root has nothing to recover
        """

    @hookspec(firstresult=True)
    def waypoint_list_checkpoints(self, recover_id: str) -> list["Checkpoint"]:  # type: ignore[empty-body]
        """Return every checkpoint saved under recover_id."""

    @hookspec
    def waypoint_update_record_status(self, record: "RecoverRecordLike") -> None:
        """Apply record.status (IDLE -> CONSUMED) to the stored record."""
