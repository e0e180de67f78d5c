import customtkinter as ctk
from typing import Callable, Dict, List, Optional

from ..sim.simulator import Snapshot

# --- CONSTANTES DE DIBUJO ---
BLOCK_SIZE_PX = 22
BLOCK_PAD_PX = 3
COLS = 25

FILE_COLORS = [
    "#E4572E", "#F3A712", "#A8C686", "#669BBC", "#D17A22",
    "#B388EB", "#F7AEF8", "#72DDF7", "#FFD166", "#06D6A0",
]
COLOR_ALLOCATED = "#3DDC84"
COLOR_FREED = "#FF5C5C"
COLOR_SELECTED = "#FFFFFF"


class DiskView(ctk.CTkFrame):
    """
    Grilla de bloques del disco. Cada archivo tiene su color, los bloques
    índice llevan una "I" y el archivo seleccionado se remarca. Los bloques que
    cambiaron en la última operación se bordean (verde = asignado, rojo = liberado).
    Click en un bloque ocupado -> `on_block_click(file_id)`.
    """

    def __init__(
        self,
        master,
        palette: Dict[str, str],
        on_block_click: Optional[Callable[[Optional[str]], None]] = None,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self.palette = palette
        self.on_block_click = on_block_click
        self.configure(fg_color="transparent")
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self.COLOR_FREE = self.palette["button_hover"]

        self.info_label = ctk.CTkLabel(
            self, text="", font=ctk.CTkFont(size=16), text_color=self.palette["text_light"]
        )
        self.info_label.grid(row=0, column=0, padx=10, pady=(0, 5), sticky="w")

        self.legend_frame = ctk.CTkFrame(self, fg_color="transparent")
        self.legend_frame.grid(row=1, column=0, padx=15, pady=0, sticky="w")
        for color, text in (
            (self.COLOR_FREE, "Libre"),
            (COLOR_ALLOCATED, "Recién asignado"),
            (COLOR_FREED, "Recién liberado"),
        ):
            ctk.CTkFrame(self.legend_frame, width=15, height=15, fg_color=color).pack(side="left", padx=(0, 5))
            ctk.CTkLabel(self.legend_frame, text=text, text_color=self.palette["text_light"]).pack(side="left", padx=(0, 20))
        ctk.CTkLabel(self.legend_frame, text="I = bloque índice", text_color=self.palette["text_light"]).pack(side="left")

        self.scroll_frame = ctk.CTkScrollableFrame(self, fg_color="transparent")
        self.scroll_frame.grid(row=2, column=0, sticky="nsew")
        self.scroll_frame.grid_columnconfigure(0, weight=1)

        self.canvas = ctk.CTkCanvas(
            self.scroll_frame, bg=self.palette["frame_bg"], highlightthickness=0, width=1, height=1
        )
        self.canvas.grid(row=0, column=0, pady=10, padx=10)
        self.canvas.bind("<Button-1>", self._on_click)

        self.stats_label = ctk.CTkLabel(
            self, text="", justify="left", text_color=self.palette["text_light"]
        )
        self.stats_label.grid(row=3, column=0, padx=10, pady=(5, 0), sticky="w")

        self._owners: List[Optional[str]] = []

    def file_color(self, position: int) -> str:
        return FILE_COLORS[position % len(FILE_COLORS)]

    def show_snapshot(self, snapshot: Snapshot):
        """Redibuja todo el disco a partir de una foto del simulador."""
        self._owners = list(snapshot.owners)
        colors = {f.id: self.file_color(i) for i, f in enumerate(snapshot.files)}
        index_blocks = {f.index_block for f in snapshot.files if f.index_block is not None}
        selected = snapshot.selected_file_id
        allocated = set(snapshot.last_changes.allocated)
        freed = set(snapshot.last_changes.freed)

        n_rows = (snapshot.disk_size + COLS - 1) // COLS
        cell = BLOCK_SIZE_PX + BLOCK_PAD_PX
        self.canvas.delete("all")
        self.canvas.configure(width=max(1, COLS * cell), height=max(1, n_rows * cell))

        for i, owner in enumerate(snapshot.owners):
            x1 = (i % COLS) * cell
            y1 = (i // COLS) * cell
            x2, y2 = x1 + BLOCK_SIZE_PX, y1 + BLOCK_SIZE_PX

            fill = self.COLOR_FREE if owner is None else colors.get(owner, self.palette["app_bg"])
            outline, width = "", 0
            if i in allocated:
                outline, width = COLOR_ALLOCATED, 3
            elif i in freed:
                outline, width = COLOR_FREED, 3
            elif owner is not None and owner == selected:
                outline, width = COLOR_SELECTED, 2

            self.canvas.create_rectangle(x1, y1, x2, y2, fill=fill, outline=outline, width=width)
            if i in index_blocks:
                self.canvas.create_text(
                    (x1 + x2) / 2, (y1 + y2) / 2, text="I", fill=self.palette["app_bg"],
                    font=("TkDefaultFont", 10, "bold"),
                )

        frag = snapshot.fragmentation()
        self.info_label.configure(
            text=f"Disco de {snapshot.disk_size} bloques · estrategia activa: {snapshot.strategy}"
        )
        self.stats_label.configure(
            text=(
                f"Libres: {frag.total_free_blocks}   "
                f"Tramo libre más largo: {frag.largest_free_segment}   "
                f"Frag. externa: {frag.external_fragmentation_pct:.0f} %  "
                "(1 - tramo más largo / libres)"
            )
        )

    def _on_click(self, event):
        cell = BLOCK_SIZE_PX + BLOCK_PAD_PX
        col, row = int(event.x // cell), int(event.y // cell)
        if col >= COLS:
            return
        i = row * COLS + col
        if 0 <= i < len(self._owners) and self.on_block_click is not None:
            self.on_block_click(self._owners[i])
