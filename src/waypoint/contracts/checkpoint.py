"""Recovery domain contracts.

These types are returned by the recovery coordinator and are NOT
persisted themselves (the persisted shapes are in records.py).
"""

from dataclasses import dataclass

from waypoint.contracts.records import Checkpoint, RecoverRecord


@dataclass(frozen=True)
class ResumePoint:
    """Everything the engine needs to rehydrate a suspended root execution.

    checkpoints carry no ordering guarantee; the engine rebuilds the
    hierarchy from parent_uid / root_uid / scope.
    """

    record: RecoverRecord
    checkpoints: tuple[Checkpoint, ...]

    @property
    def recover_id(self) -> str:
        return self.record.recover_id
