import pytest

from fsalloc.core.errors import (
    AllocationError,
    InsufficientContiguousSpaceError,
    InsufficientSpaceError,
    InvalidStrategyError,
)
from fsalloc.core.free_space import FreeSpaceMap
from fsalloc.fs_strategies import get_allocator, strategy_names, validate_strategy
from fsalloc.fs_strategies.contiguous import ContiguousAllocator
from fsalloc.fs_strategies.indexed import IndexedAllocator, index_entries
from fsalloc.fs_strategies.linked import END_OF_FILE_MARKER, LinkedAllocator, link_table


class TestRegistry:
    def test_names(self):
        assert strategy_names() == ["contiguous", "linked", "indexed"]

    def test_unknown(self):
        with pytest.raises(InvalidStrategyError):
            validate_strategy("fat")
        with pytest.raises(ValueError):
            get_allocator("fat")

    def test_get_allocator(self):
        assert isinstance(get_allocator("indexed"), IndexedAllocator)


class TestContiguous:
    def test_first_fit(self):
        alloc = ContiguousAllocator().allocate(FreeSpaceMap([1, 0, 0, 1, 0, 0, 0]), 3)
        assert alloc.data_blocks == (4, 5, 6)
        assert alloc.index_block is None
        assert alloc.strategy == "contiguous"

    def test_fails_on_fragmented_space(self):
        space = FreeSpaceMap([0, 0, 1, 0, 0, 1, 0, 0])
        with pytest.raises(InsufficientContiguousSpaceError) as exc:
            ContiguousAllocator().allocate(space, 3, name="x.txt")
        assert exc.value.largest_run == 2
        assert exc.value.available == 6
        assert isinstance(exc.value, MemoryError)

    def test_does_not_mutate_space(self):
        space = FreeSpaceMap([0, 0, 0])
        ContiguousAllocator().allocate(space, 2)
        assert space.snapshot_bitmap() == [0, 0, 0]

    def test_events(self, events):
        allocator = ContiguousAllocator(on_event=events)
        allocator.allocate(FreeSpaceMap([0, 0]), 1)
        with pytest.raises(AllocationError):
            allocator.allocate(FreeSpaceMap([1, 1]), 1)
        assert [e for e, _ in events.recorded] == ["allocate:done", "allocate:failed"]

    def test_event_callback_without_payload(self):
        seen = []
        ContiguousAllocator(on_event=lambda event_type: seen.append(event_type)).allocate(
            FreeSpaceMap([0]), 1
        )
        assert seen == ["allocate:done"]


class TestLinked:
    def test_takes_lowest_free_blocks(self):
        alloc = LinkedAllocator().allocate(FreeSpaceMap([1, 0, 1, 0, 0, 1, 0]), 3)
        assert alloc.data_blocks == (1, 3, 4)

    def test_fails_only_when_total_short(self):
        with pytest.raises(InsufficientSpaceError) as exc:
            LinkedAllocator().allocate(FreeSpaceMap([0, 1, 0]), 3)
        assert exc.value.strategy == "linked"
        assert exc.value.requested == 3
        assert exc.value.available == 2

    def test_link_table(self):
        assert link_table([2, 5, 7]) == [(2, 5), (5, 7), (7, END_OF_FILE_MARKER)]
        assert link_table([4]) == [(4, -1)]


class TestIndexed:
    def test_index_block_is_lowest_free(self):
        alloc = IndexedAllocator().allocate(FreeSpaceMap([1, 0, 0, 1, 0, 0]), 3)
        assert alloc.index_block == 1
        assert alloc.data_blocks == (2, 4, 5)
        assert alloc.total_blocks == 4
        assert alloc.all_blocks() == [1, 2, 4, 5]

    def test_needs_one_extra_block(self):
        with pytest.raises(InsufficientSpaceError) as exc:
            IndexedAllocator().allocate(FreeSpaceMap([0, 0, 0]), 3)
        assert exc.value.requested == 4
        assert exc.value.index_blocks == 1
        assert "índice" in str(exc.value)

    def test_index_entries(self):
        assert index_entries([7, 3]) == [(0, 7), (1, 3)]

    def test_zero_blocks_rejected(self):
        with pytest.raises(ValueError):
            IndexedAllocator().allocate(FreeSpaceMap([0, 0]), 0)
