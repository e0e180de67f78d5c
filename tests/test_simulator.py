import pytest

from fsalloc.core.errors import (
    DuplicateNameError,
    InsufficientContiguousSpaceError,
    InsufficientSpaceError,
    InvalidNameError,
    InvalidPermissionsError,
    InvalidSizeError,
    InvalidStrategyError,
    NotFoundError,
    OccupiedShrinkRegionError,
    SimulationError,
)
from fsalloc.sim.simulator import BlockChanges


class TestBasicScenarios:
    def test_contiguous_gap(self, make_sim, check):
        sim = make_sim(10, "contiguous")
        a = sim.create_file("a", 4)
        b = sim.create_file("b", 4)
        assert a.block_indices == [0, 1, 2, 3]
        assert b.block_indices == [4, 5, 6, 7]
        sim.delete_file(a.id)
        before = sim.snapshot()
        with pytest.raises(InsufficientContiguousSpaceError) as exc:
            sim.create_file("c", 5)
        assert exc.value.largest_run == 4
        assert exc.value.available == 6
        assert sim.snapshot() == before
        check(sim)

    def test_linked_overflow(self, make_sim):
        sim = make_sim(10, "linked")
        a = sim.create_file("a", 3)
        assert a.block_indices == [0, 1, 2]
        with pytest.raises(InsufficientSpaceError):
            sim.create_file("b", 10)
        assert sim.stats()["free_blocks"] == 7

    def test_indexed_basic(self, make_sim):
        sim = make_sim(10, "indexed")
        a = sim.create_file("a", 3)
        assert a.index_block == 0
        assert a.block_indices == [1, 2, 3]
        assert sim.stats()["used_blocks"] == 4
        assert sim.stats()["index_blocks"] == 1

    def test_shrink_occupied(self, make_sim):
        sim = make_sim(5)
        a = sim.create_file("a", 5)
        with pytest.raises(OccupiedShrinkRegionError):
            sim.resize_disk(3)
        assert sim.disk_size == 5
        sim.delete_file(a.id)
        sim.resize_disk(3)
        assert sim.disk_size == 3
        assert sim.fragmentation().total_free_blocks == 3


class TestCreate:
    def test_name_gets_default_extension(self, make_sim):
        sim = make_sim()
        assert sim.create_file("notas", 1).name == "notas.txt"
        assert sim.create_file("foto.png", 1).name == "foto.png"

    def test_duplicate_after_normalization(self, make_sim):
        sim = make_sim()
        sim.create_file("notas", 1)
        with pytest.raises(DuplicateNameError):
            sim.create_file("notas.txt", 1)
        with pytest.raises(FileExistsError):
            sim.create_file("notas", 1)

    @pytest.mark.parametrize("size", [0, -3, 1001, "3", 2.0, True])
    def test_invalid_size(self, make_sim, size):
        with pytest.raises(InvalidSizeError):
            make_sim().create_file("x", size)

    def test_blank_name(self, make_sim):
        with pytest.raises(InvalidNameError):
            make_sim().create_file("   ", 1)

    def test_defaults_and_selection(self, make_sim):
        sim = make_sim()
        f = sim.create_file("x", 2)
        assert f.permissions == "666"
        assert f.strategy == "contiguous"
        assert sim.selected_file_id == f.id
        assert sim.last_changes.allocated == (0, 1)

    def test_returned_record_is_a_copy(self, make_sim):
        sim = make_sim()
        f = sim.create_file("x", 2)
        f.block_indices.append(9)
        assert sim.get_file(f.id).block_indices == [0, 1]


class TestDelete:
    def test_frees_index_and_data(self, make_sim, check):
        sim = make_sim(10, "indexed")
        f = sim.create_file("x", 3)
        snap = sim.delete_file(f.id)
        assert snap.owners == (None,) * 10
        assert sim.last_changes.freed == (0, 1, 2, 3)
        assert sim.selected_file_id is None
        check(sim)

    def test_unknown_id(self, make_sim):
        with pytest.raises(NotFoundError):
            make_sim().delete_file("nope")


class TestStrategyTagging:
    def test_existing_files_keep_their_strategy(self, make_sim, check):
        sim = make_sim(20)
        a = sim.create_file("a", 2)
        sim.set_strategy("linked")
        b = sim.create_file("b", 2)
        sim.set_strategy("indexed")
        c = sim.create_file("c", 2)
        assert [sim.get_file(x.id).strategy for x in (a, b, c)] == ["contiguous", "linked", "indexed"]
        assert sim.get_file(c.id).index_block == 4
        check(sim)

    def test_invalid_strategy(self, make_sim):
        sim = make_sim()
        with pytest.raises(InvalidStrategyError):
            sim.set_strategy("fat")
        assert sim.strategy == "contiguous"

    def test_same_strategy_not_logged(self, make_sim):
        sim = make_sim()
        sim.set_strategy("contiguous")
        assert len(sim.logs) == 1
        sim.set_strategy("linked")
        assert sim.logs[-1].message == "Estrategia de asignación cambiada a linked."


class TestResize:
    def test_grow_in_place_reuses_blocks(self, make_sim, check):
        sim = make_sim(10)
        f = sim.create_file("a", 3)
        resized = sim.resize_file(f.id, 5)
        assert resized.block_indices == [0, 1, 2, 3, 4]
        assert sim.last_changes.allocated == (3, 4)
        assert sim.last_changes.freed == ()
        check(sim)

    def test_shrink_releases_tail(self, make_sim, check):
        sim = make_sim(10)
        f = sim.create_file("a", 5)
        sim.resize_file(f.id, 2)
        assert sim.get_file(f.id).block_indices == [0, 1]
        assert sim.last_changes.freed == (2, 3, 4)
        check(sim)

    def test_contiguous_grow_moves_when_blocked(self, make_sim, check):
        sim = make_sim(10)
        a = sim.create_file("a", 2)
        sim.create_file("b", 2)
        resized = sim.resize_file(a.id, 4)
        assert resized.block_indices == [4, 5, 6, 7]
        assert set(sim.last_changes.freed) == {0, 1}
        check(sim)

    def test_own_blocks_count_as_available(self, make_sim):
        sim = make_sim(5)
        f = sim.create_file("a", 5)
        assert sim.resize_file(f.id, 5).block_indices == [0, 1, 2, 3, 4]

    @pytest.mark.parametrize("strategy", ["contiguous", "linked", "indexed"])
    def test_same_size_keeps_every_block(self, make_sim, strategy, check):
        sim = make_sim(12, strategy)
        a = sim.create_file("a", 3)
        sim.create_file("b", 2)
        before_table = sim.block_table()
        before = sim.get_file(a.id)

        after = sim.resize_file(a.id, 3)

        assert sim.last_changes == BlockChanges()
        assert sim.block_table() == before_table
        assert after.all_blocks() == before.all_blocks()
        check(sim)

    def test_failure_leaves_state_untouched(self, make_sim):
        sim = make_sim(6)
        a = sim.create_file("a", 3)
        sim.create_file("b", 2)
        before = sim.snapshot()
        with pytest.raises(InsufficientContiguousSpaceError):
            sim.resize_file(a.id, 5)
        assert sim.snapshot() == before

    def test_uses_active_strategy(self, make_sim, check):
        sim = make_sim(10)
        f = sim.create_file("a", 3)
        sim.set_strategy("indexed")
        resized = sim.resize_file(f.id, 3)
        assert resized.strategy == "indexed"
        assert resized.index_block == 0
        assert resized.block_indices == [1, 2, 3]
        check(sim)

    def test_indexed_to_linked_drops_index(self, make_sim, check):
        sim = make_sim(10, "indexed")
        f = sim.create_file("a", 2)
        sim.set_strategy("linked")
        resized = sim.resize_file(f.id, 3)
        assert resized.index_block is None
        assert resized.block_indices == [0, 1, 2]
        check(sim)


class TestRenameChmodSelect:
    def test_rename(self, make_sim):
        sim = make_sim()
        f = sim.create_file("a", 1)
        assert sim.rename_file(f.id, "b").name == "b.txt"
        assert sim.logs[-1].message == 'Renombrado "a.txt" a "b.txt"'

    def test_rename_to_own_name(self, make_sim):
        sim = make_sim()
        f = sim.create_file("a", 1)
        assert sim.rename_file(f.id, "a.txt").name == "a.txt"

    def test_rename_duplicate(self, make_sim):
        sim = make_sim()
        sim.create_file("a", 1)
        b = sim.create_file("b", 1)
        with pytest.raises(DuplicateNameError):
            sim.rename_file(b.id, "a")

    def test_chmod(self, make_sim):
        sim = make_sim()
        f = sim.create_file("a", 1)
        sim.chmod(f.id, "755")
        assert sim.get_file(f.id).permissions == "755"

    @pytest.mark.parametrize("perms", ["888", "75", "7555", "rwx", ""])
    def test_chmod_invalid(self, make_sim, perms):
        sim = make_sim()
        f = sim.create_file("a", 1)
        with pytest.raises(InvalidPermissionsError):
            sim.chmod(f.id, perms)
        assert sim.get_file(f.id).permissions == "666"

    def test_chmod_unknown_file_checked_first(self, make_sim):
        with pytest.raises(NotFoundError):
            make_sim().chmod("nope", "bad")

    def test_select(self, make_sim):
        sim = make_sim()
        f = sim.create_file("a", 1)
        sim.select_file(None)
        assert sim.selected_file_id is None
        assert sim.select_file(f.id).selected_file_id == f.id
        with pytest.raises(NotFoundError):
            sim.select_file("nope")


class TestQueries:
    def test_find_by_name(self, make_sim):
        sim = make_sim()
        f = sim.create_file("a", 1)
        assert sim.find_by_name("a").id == f.id
        assert sim.find_by_name("a.txt").id == f.id
        assert sim.find_by_name("z") is None

    def test_largest_file(self, make_sim):
        sim = make_sim()
        assert sim.largest_file() is None
        sim.create_file("a", 2)
        sim.create_file("b", 5)
        sim.create_file("c", 3)
        assert sim.largest_file().name == "b.txt"

    def test_resize_disk_bounds(self, make_sim):
        sim = make_sim()
        with pytest.raises(InvalidSizeError):
            sim.resize_disk(0)
        with pytest.raises(InvalidSizeError):
            sim.resize_disk(1001)
        sim.resize_disk(1000)
        assert sim.stats()["free_blocks"] == 1000


class TestLogAndEvents:
    def test_log_messages(self, make_sim):
        sim = make_sim(10)
        f = sim.create_file("a", 2)
        sim.chmod(f.id, "644")
        sim.resize_file(f.id, 3)
        sim.resize_disk(12)
        sim.defragment()
        sim.delete_file(f.id)
        assert [e.message for e in sim.logs] == [
            "Sistema de archivos inicializado con 10 bloques. Asignación: contiguous.",
            'Creado "a.txt" (2 bloques, 666) con contiguous',
            'Permisos de "a.txt" cambiados a 644',
            'Redimensionado "a.txt" a 3 bloques con contiguous',
            "Tamaño de disco cambiado a 12 bloques.",
            "Desfragmentación completada.",
            'Eliminado "a.txt"',
        ]
        assert str(sim.logs[0]).startswith("[12:00:01]")

    def test_failed_commands_do_not_log(self, make_sim):
        sim = make_sim(2)
        with pytest.raises(SimulationError):
            sim.create_file("a", 3)
        assert len(sim.logs) == 1

    def test_on_event(self, make_sim, events):
        sim = make_sim(10, on_event=events)
        f = sim.create_file("a", 2)
        sim.delete_file(f.id)
        kinds = [e for e, _ in events.recorded]
        assert kinds == ["allocate:done", "create", "delete"]
        assert events.recorded[1][1]["file_id"] == f.id
        assert events.recorded[2][1]["freed"] == [0, 1]


class TestInvariants:
    def test_random_workload_stays_consistent(self, make_sim, check):
        import random

        rng = random.Random(99)
        sim = make_sim(60)
        for step in range(300):
            files = sim.list_files()
            action = rng.choice(["create", "create", "delete", "resize", "strategy", "defrag"])
            try:
                if action == "create":
                    sim.create_file(f"f{step}", rng.randint(1, 8))
                elif action == "delete" and files:
                    sim.delete_file(rng.choice(files).id)
                elif action == "resize" and files:
                    sim.resize_file(rng.choice(files).id, rng.randint(1, 10))
                elif action == "strategy":
                    sim.set_strategy(rng.choice(["contiguous", "linked", "indexed"]))
                elif action == "defrag":
                    sim.defragment()
            except SimulationError:
                pass
            check(sim)
            for f in sim.list_files():
                assert len(f.block_indices) == f.size_blocks
                assert (f.index_block is not None) == (f.strategy == "indexed")
                if f.strategy == "contiguous":
                    start = f.block_indices[0]
                    assert f.block_indices == list(range(start, start + f.size_blocks))


class TestLastChanges:
    def test_commands_without_block_moves_clear_changes(self, make_sim):
        sim = make_sim(10)
        f = sim.create_file("a", 4)
        assert sim.last_changes.allocated == (0, 1, 2, 3)

        sim.chmod(f.id, "600")
        assert sim.last_changes == BlockChanges()

        sim.create_file("b", 1)
        sim.rename_file(f.id, "c")
        assert sim.last_changes == BlockChanges()

        sim.create_file("d", 1)
        sim.set_strategy("linked")
        assert sim.last_changes == BlockChanges()

        sim.create_file("e", 1)
        sim.resize_disk(20)
        assert sim.last_changes == BlockChanges()

    def test_selection_keeps_changes(self, make_sim):
        sim = make_sim(10)
        f = sim.create_file("a", 2)
        sim.select_file(None)
        sim.select_file(f.id)
        assert sim.last_changes.allocated == (0, 1)
