# tests/conftest.py
"""Shared test fixtures and helpers.

Engine-side objects (flows, processes, steps) are stood in for by
FakeEntity (tests/helpers/entities.py). Tests build them through the
factory fixtures so ids are always unique.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Callable, Iterator
from pathlib import Path
from uuid import uuid4

import pytest
from hypothesis import Phase, Verbosity, settings

from tests.helpers.entities import T0, FakeEntity
from waypoint.contracts import Checkpoint, CheckpointScope, RecoverRecord, RecoverStatus
from waypoint.core.store import PersistenceDB

# =============================================================================
# Hypothesis profiles
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db(tmp_path: Path) -> Iterator[PersistenceDB]:
    """File-backed SQLite database with every table created."""
    database = PersistenceDB(f"sqlite:///{tmp_path}/waypoint.db")
    yield database
    database.close()


@pytest.fixture
def memory_db() -> Iterator[PersistenceDB]:
    """In-memory SQLite database with every table created."""
    database = PersistenceDB.in_memory()
    yield database
    database.close()


@pytest.fixture
def bare_db(tmp_path: Path) -> Iterator[PersistenceDB]:
    """File-backed SQLite database with no tables."""
    database = PersistenceDB(f"sqlite:///{tmp_path}/bare.db", create_tables=False)
    yield database
    database.close()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_entity() -> Callable[..., FakeEntity]:
    """Build a FakeEntity with a fresh id and a fixed start time."""

    def _make(name: str = "entity", **kwargs: object) -> FakeEntity:
        kwargs.setdefault("start_time", T0)
        return FakeEntity(id=str(uuid4()), name=name, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def make_checkpoint() -> Callable[..., Checkpoint]:
    """Build a Checkpoint for a given suspend event."""

    def _make(
        recover_id: str,
        root_uid: str,
        *,
        scope: CheckpointScope = CheckpointScope.STEP,
        parent_uid: str | None = None,
        snapshot: bytes | None = b"state",
        name: str = "checkpoint",
    ) -> Checkpoint:
        return Checkpoint(
            id=str(uuid4()),
            uid=str(uuid4()),
            name=name,
            recover_id=recover_id,
            parent_uid=parent_uid,
            root_uid=root_uid,
            scope=scope,
            snapshot=snapshot,
        )

    return _make


@pytest.fixture
def make_record() -> Callable[..., RecoverRecord]:
    """Build an IDLE RecoverRecord with a fresh recover_id."""

    def _make(root_uid: str, *, name: str = "suspend", recover_id: str | None = None) -> RecoverRecord:
        return RecoverRecord(
            root_uid=root_uid,
            recover_id=recover_id if recover_id is not None else str(uuid4()),
            status=RecoverStatus.IDLE,
            name=name,
        )

    return _make
