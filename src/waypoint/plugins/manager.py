# src/waypoint/plugins/manager.py
"""Engine-facing hook surface.

Uses pluggy for hook-based registration: the engine holds a
PersistenceHooks and calls it at lifecycle and suspend points; the
persistence adapter registers plugins that implement the hooks.
"""

from collections.abc import Sequence
from typing import Any

import pluggy

from waypoint.contracts import (
    Checkpoint,
    CheckpointLike,
    EntityKind,
    EntitySnapshot,
    ExecutionStatus,
    RecoverRecord,
    RecoverRecordLike,
)
from waypoint.plugins.hookspecs import (
    PROJECT_NAME,
    WaypointLifecycleSpec,
    WaypointSuspendSpec,
)

_SUSPEND_HOOKS: tuple[str, ...] = (
    "waypoint_save_checkpoints",
    "waypoint_get_latest_record",
    "waypoint_list_checkpoints",
    "waypoint_update_record_status",
)


class PersistenceHooks:
    """Registration point for persistence plugins.

    Lifecycle hooks are optional: with no lifecycle plugin registered,
    insert_entity/update_entity are no-ops. Suspend hooks are not: the
    engine cannot suspend without somewhere to put the suspend point, so
    calling them with no implementation raises RuntimeError.

    At most one suspend plugin may be registered at a time, so a suspend
    point is written once and consumed once.

    Usage:
        hooks = PersistenceHooks()
        Persistence(db).inject(hooks)

        hooks.insert_entity(EntityKind.FLOW, flow)
        record = hooks.get_latest_record(root_uid)
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)

        # Register hookspecs
        self._pm.add_hookspecs(WaypointLifecycleSpec)
        self._pm.add_hookspecs(WaypointSuspendSpec)

    def register(self, plugin: Any, name: str | None = None) -> None:
        """Register a plugin.

        Args:
            plugin: Plugin instance implementing hook methods
            name: Optional registration name (defaults to pluggy's choice)

        Raises:
            ValueError: If the plugin (or its name) is already registered, or
                if it implements suspend hooks and another suspend plugin
                is already registered
        """
        if self._pm.is_registered(plugin):
            raise ValueError(f"Plugin already registered: {type(plugin).__name__}")
        if name is not None and self._pm.get_plugin(name) is not None:
            raise ValueError(f"Plugin name already registered: '{name}'")
        if self._implements_suspend(plugin) and self._has_suspend_plugin():
            raise ValueError(f"A suspend persistence plugin is already registered; cannot add {type(plugin).__name__}")
        self._pm.register(plugin, name=name)

    def unregister(self, plugin: Any) -> None:
        self._pm.unregister(plugin)

    def is_registered(self, plugin: Any) -> bool:
        return self._pm.is_registered(plugin)

    # === Lifecycle ===

    def insert_entity(self, kind: EntityKind, entity: EntitySnapshot) -> None:
        """Report that a flow, process or step started."""
        self._pm.hook.waypoint_insert_entity(kind=EntityKind(kind), entity=entity)

    def update_entity(self, kind: EntityKind, entity: EntitySnapshot) -> ExecutionStatus | None:
        """Report that a flow, process or step finished or suspended.

        Returns:
            The status written by the first plugin that tracks this kind,
            or None if no plugin tracks it
        """
        results = self._pm.hook.waypoint_update_entity(kind=EntityKind(kind), entity=entity)
        return next((status for status in results if status is not None), None)

    # === Suspend / recover ===

    def save_checkpoint_and_record(
        self,
        checkpoints: Sequence[CheckpointLike],
        record: RecoverRecordLike,
    ) -> RecoverRecord:
        """Persist a suspend point through the registered suspend plugin."""
        self._require("waypoint_save_checkpoints")
        results = self._pm.hook.waypoint_save_checkpoints(checkpoints=checkpoints, record=record)
        return results[0]

    def get_latest_record(self, root_uid: str) -> RecoverRecord:
        """Get the unconsumed recovery record for a root.

        Raises:
            RecordNotFoundError: If the root has nothing to recover
        """
        self._require("waypoint_get_latest_record")
        return self._pm.hook.waypoint_get_latest_record(root_uid=root_uid)

    def list_checkpoints(self, recover_id: str) -> list[Checkpoint]:
        self._require("waypoint_list_checkpoints")
        return self._pm.hook.waypoint_list_checkpoints(recover_id=recover_id)

    def update_record_status(self, record: RecoverRecordLike) -> None:
        self._require("waypoint_update_record_status")
        self._pm.hook.waypoint_update_record_status(record=record)

    @staticmethod
    def _implements_suspend(plugin: Any) -> bool:
        return any(hasattr(plugin, hook_name) for hook_name in _SUSPEND_HOOKS)

    def _has_suspend_plugin(self) -> bool:
        return any(getattr(self._pm.hook, hook_name).get_hookimpls() for hook_name in _SUSPEND_HOOKS)

    def _require(self, hook_name: str) -> None:
        caller = getattr(self._pm.hook, hook_name)
        if not caller.get_hookimpls():
            raise RuntimeError(f"No suspend persistence plugin registered (hook '{hook_name}' has no implementation)")
