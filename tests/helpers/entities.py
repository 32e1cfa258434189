"""Engine stand-ins for persistence tests.

FakeEntity is a plain dataclass that structurally satisfies the
EntitySnapshot / ProcessSnapshot / StepSnapshot protocols.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
T1 = datetime(2024, 5, 1, 12, 5, 30, 250000, tzinfo=UTC)


@dataclass
class FakeEntity:
    """Mutable stand-in for an engine flow/process/step.

    The engine mutates its own objects between the Begin and terminal
    callbacks, and tests do the same.
    """

    id: str
    name: str
    success: bool = False
    suspended: bool = False
    start_time: datetime | None = None
    end_time: datetime | None = None
    flow_id: str | None = None
    process_id: str | None = None
