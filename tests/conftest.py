from datetime import datetime, timedelta
from itertools import count

import pytest

from fsalloc.sim.simulator import FileSystemSimulator


class TickClock:
    """Reloj que avanza un segundo por llamada (orden de creación determinista)."""

    def __init__(self):
        self._now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        self._now += timedelta(seconds=1)
        return self._now


@pytest.fixture
def make_sim():
    def _make(disk_size=10, strategy="contiguous", **kwargs):
        ids = count(1)
        kwargs.setdefault("clock", TickClock())
        kwargs.setdefault("id_factory", lambda: f"f{next(ids)}")
        return FileSystemSimulator(disk_size, strategy, **kwargs)
    return _make


@pytest.fixture
def events():
    recorded = []

    def on_event(event_type, **payload):
        recorded.append((event_type, payload))

    on_event.recorded = recorded
    return on_event


def assert_consistent(sim):
    """Cada bloque tiene a lo sumo un dueño y coincide con el catálogo."""
    files = sim.list_files()
    owners = sim.block_table()
    seen = set()
    for f in files:
        blocks = f.all_blocks()
        assert len(blocks) == f.total_blocks
        assert not seen.intersection(blocks)
        seen.update(blocks)
        for b in blocks:
            assert owners[b] == f.id
    assert sum(1 for o in owners if o is not None) == len(seen)


@pytest.fixture
def check():
    return assert_consistent
