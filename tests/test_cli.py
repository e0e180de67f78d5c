from fsalloc.cli.main import format_file_table, render_disk_map


class TestDiskMap:
    def test_symbols(self, make_sim):
        sim = make_sim(10, "indexed")
        sim.create_file("a", 3)
        sim.set_strategy("linked")
        sim.create_file("b", 2)
        assert render_disk_map(sim.snapshot(), columns=4) == [
            "0 | #AAA",
            "4 | BB..",
            "8 | ..",
        ]

    def test_row_labels_are_padded(self, make_sim):
        rows = render_disk_map(make_sim(120).snapshot(), columns=50)
        assert rows[0].startswith("  0 | ")
        assert rows[2].startswith("100 | ")
        assert len(rows) == 3


class TestFileTable:
    def test_marks_selected(self, make_sim):
        sim = make_sim(10, "indexed")
        f = sim.create_file("a", 3)
        lines = format_file_table(sim.list_files(), f.id)
        assert len(lines) == 2
        assert "*" in lines[1]
        assert "[0] 1,2,3" in lines[1]
