"""Engine-facing protocols.

These describe the objects the workflow engine hands to the adapter.
They're used for type checking; the adapter reads attributes and never
mutates the engine's objects.

Entity snapshots:
- EntitySnapshot: a flow (id, name, success/suspended flags, times)
- ProcessSnapshot: adds the owning flow_id
- StepSnapshot: adds the owning process_id

Suspend persistence:
- CheckpointLike: one unit snapshot of a suspend event
- RecoverRecordLike: the suspend event itself
"""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class EntitySnapshot(Protocol):
    """Engine view of a flow, process, or step at a lifecycle callback.

    end_time is None while the entity is still running.
    """

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def success(self) -> bool: ...

    @property
    def suspended(self) -> bool: ...

    @property
    def start_time(self) -> datetime | None: ...

    @property
    def end_time(self) -> datetime | None: ...


@runtime_checkable
class ProcessSnapshot(EntitySnapshot, Protocol):
    """Process snapshot - belongs to a flow."""

    @property
    def flow_id(self) -> str: ...


@runtime_checkable
class StepSnapshot(ProcessSnapshot, Protocol):
    """Step snapshot - belongs to a process and a flow."""

    @property
    def process_id(self) -> str: ...


@runtime_checkable
class CheckpointLike(Protocol):
    """Engine checkpoint value object.

    scope is the integer depth tag (see CheckpointScope).
    """

    @property
    def id(self) -> str: ...

    @property
    def uid(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def recover_id(self) -> str: ...

    @property
    def parent_uid(self) -> str | None: ...

    @property
    def root_uid(self) -> str: ...

    @property
    def scope(self) -> int: ...

    @property
    def snapshot(self) -> bytes | None: ...


@runtime_checkable
class RecoverRecordLike(Protocol):
    """Engine recovery-record value object."""

    @property
    def root_uid(self) -> str: ...

    @property
    def recover_id(self) -> str: ...

    @property
    def status(self) -> int: ...

    @property
    def name(self) -> str: ...
