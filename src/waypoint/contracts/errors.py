"""Persistence error taxonomy.

Every error raised by the adapter derives from PersistenceError so engines
can catch the whole family at the registration seam. Store-level errors are
always chained (``raise ... from exc``) so the driver error stays visible.
"""

from enum import Enum
from typing import Any


class PersistenceError(Exception):
    """Base class for all Waypoint persistence errors."""


class SchemaError(PersistenceError):
    """Raised when a table cannot be created for any reason other than it already existing.

    Fatal: persistence must not be considered enabled after this.
    """

    def __init__(self, table: str, detail: str) -> None:
        self.table = table
        self.detail = detail
        super().__init__(f"Failed to create table '{table}': {detail}")


class ObjectAlreadyExistsError(PersistenceError):
    """Structured "object already exists" signal.

    Raised by schema bootstrap when a CREATE fails and the object is found
    to exist afterwards (another process won the race). Bootstrap treats
    it as success; nothing else should catch it.
    """

    def __init__(self, object_name: str) -> None:
        self.object_name = object_name
        super().__init__(f"Object '{object_name}' already exists")


class WriteConflictError(PersistenceError):
    """Raised when inserting an execution record whose id already exists.

    The engine guarantees globally unique ids, so a collision is a caller
    bug. Never retried.
    """

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} '{entity_id}' already exists")


class TransactionFailureError(PersistenceError):
    """Raised when the checkpoint + recovery-record write fails.

    The transaction has been rolled back: no checkpoint and no record for
    recover_id are visible. The engine must treat the suspend as NOT
    durably persisted.
    """

    def __init__(self, recover_id: str, detail: str) -> None:
        self.recover_id = recover_id
        self.detail = detail
        super().__init__(f"Suspend point '{recover_id}' was not persisted: {detail}")


class RecordNotFoundError(PersistenceError):
    """Raised when a looked-up row does not exist.

    For recovery records this is the normal "nothing to recover" outcome,
    not a failure.
    """

    def __init__(self, what: str, key: Any) -> None:
        self.what = what
        self.key = key
        super().__init__(f"No {what} found for '{key}'")


class RecoveryConflictError(PersistenceError):
    """Raised when a recovery record was already consumed by another recovery attempt."""

    def __init__(self, recover_id: str) -> None:
        self.recover_id = recover_id
        super().__init__(f"Recovery record '{recover_id}' has already been consumed")


class StatusTransitionError(PersistenceError):
    """Raised when a status change would violate the entity or record state machine."""

    def __init__(self, subject: str, key: str, current: object, requested: object) -> None:
        self.subject = subject
        self.key = key
        self.current = current
        self.requested = requested
        super().__init__(f"Illegal {subject} transition for '{key}': {_label(current)} -> {_label(requested)}")


def _label(value: object) -> str:
    if isinstance(value, Enum):
        return value.name
    return str(value)
