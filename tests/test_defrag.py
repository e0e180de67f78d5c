from datetime import datetime, timedelta

from fsalloc.core.file_entry import FileRecord
from fsalloc.sim.defrag import defragment


def record(fid, size, strategy, blocks, index_block=None, minute=0):
    return FileRecord(
        id=fid,
        name=f"{fid}.txt",
        size_blocks=size,
        strategy=strategy,
        block_indices=list(blocks),
        index_block=index_block,
        created_at=datetime(2024, 1, 1) + timedelta(minutes=minute),
    )


class TestDefragment:
    def test_packs_in_creation_order(self):
        files = [
            record("b", 2, "linked", [7, 3], minute=2),
            record("a", 3, "contiguous", [4, 5, 6], minute=1),
        ]
        new_files, disk = defragment(files, 10)
        assert [f.id for f in new_files] == ["a", "b"]
        assert new_files[0].block_indices == [0, 1, 2]
        assert new_files[1].block_indices == [3, 4]
        assert disk.owners()[:5] == ["a", "a", "a", "b", "b"]
        assert disk.free_blocks_count() == 5

    def test_index_block_goes_first(self):
        files = [record("x", 2, "indexed", [8, 9], index_block=5)]
        new_files, _ = defragment(files, 10)
        assert new_files[0].index_block == 0
        assert new_files[0].block_indices == [1, 2]
        assert new_files[0].strategy == "indexed"

    def test_input_is_not_mutated(self):
        files = [record("a", 2, "contiguous", [5, 6])]
        defragment(files, 10)
        assert files[0].block_indices == [5, 6]

    def test_idempotent(self):
        files = [
            record("a", 2, "linked", [9, 1], minute=1),
            record("b", 3, "indexed", [4, 5, 6], index_block=2, minute=2),
        ]
        once, disk_once = defragment(files, 12)
        twice, disk_twice = defragment(once, 12)
        assert [f.all_blocks() for f in once] == [f.all_blocks() for f in twice]
        assert disk_once.owners() == disk_twice.owners()

    def test_zero_fragmentation_after(self, make_sim):
        sim = make_sim(20, "linked")
        ids = [sim.create_file(n, 3).id for n in "abcde"]
        sim.delete_file(ids[1])
        sim.delete_file(ids[3])
        assert sim.fragmentation().external_fragmentation > 0
        sim.defragment()
        assert sim.fragmentation().external_fragmentation == 0.0
        assert sim.fragmentation().largest_free_segment == 11
        assert sim.last_changes.allocated == ()

    def test_same_creation_time_keeps_catalog_order(self):
        files = [
            record("b", 1, "contiguous", [8]),
            record("a", 1, "contiguous", [2]),
        ]
        new_files, _ = defragment(files, 10)
        assert [(f.id, f.block_indices) for f in new_files] == [("b", [0]), ("a", [1])]

    def test_stops_at_first_file_that_does_not_fit(self):
        # registro mal formado: declara 2 bloques de datos pero solo trae uno
        files = [
            record("a", 3, "contiguous", [0, 1, 2], minute=1),
            record("b", 2, "indexed", [4], index_block=3, minute=2),
        ]
        new_files, disk = defragment(files, 5)
        assert [f.id for f in new_files] == ["a", "b"]
        assert new_files[1].index_block == 3
        assert new_files[1].block_indices == [4]
        assert disk.owners() == ["a", "a", "a", "b", "b"]
