import customtkinter as ctk
from tkinter import messagebox
from typing import Any, Callable, Dict, Optional

from ..core.errors import SimulationError
from ..fs_strategies import strategy_names
from ..fs_strategies.indexed import index_entries
from ..fs_strategies.linked import link_table
from ..sim.metrics import trace_point
from ..sim.simulator import FileSystemSimulator
from .charts_view import ChartsView
from .disk_view import DiskView


class FilesView(ctk.CTkFrame):
    """Lista de archivos (click = seleccionar) y detalle del seleccionado."""

    def __init__(self, master, palette: Dict[str, str], on_select: Callable[[str], None], **kwargs):
        super().__init__(master, **kwargs)
        self.palette = palette
        self.on_select = on_select
        self.configure(fg_color="transparent")
        self.grid_columnconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)
        self.grid_rowconfigure(0, weight=1)

        self.list_frame = ctk.CTkScrollableFrame(self, label_text="Archivos", fg_color=self.palette["app_bg"])
        self.list_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 10))
        self.list_frame.grid_columnconfigure(0, weight=1)

        self.detail_box = ctk.CTkTextbox(self, fg_color=self.palette["app_bg"], text_color=self.palette["text_light"])
        self.detail_box.grid(row=0, column=1, sticky="nsew")

    def show(self, sim: FileSystemSimulator):
        for child in self.list_frame.winfo_children():
            child.destroy()

        selected = sim.selected_file_id
        for row, f in enumerate(sim.list_files()):
            is_selected = f.id == selected
            ctk.CTkButton(
                self.list_frame,
                text=f"{f.name}  ·  {f.size_blocks} bloques  ·  {f.strategy}  ·  {f.permissions}",
                anchor="w",
                fg_color=self.palette["button_hover"] if is_selected else self.palette["button"],
                text_color=self.palette["text_on_button"],
                command=lambda fid=f.id: self.on_select(fid),
            ).grid(row=row, column=0, sticky="ew", padx=5, pady=2)

        self.detail_box.configure(state="normal")
        self.detail_box.delete("1.0", "end")
        self.detail_box.insert("end", self._detail_text(sim))
        self.detail_box.configure(state="disabled")

    @staticmethod
    def _detail_text(sim: FileSystemSimulator) -> str:
        if sim.selected_file_id is None:
            return "Seleccione un archivo para ver su detalle."
        f = sim.get_file(sim.selected_file_id)
        lines = [
            f"Nombre:      {f.name}",
            f"Tamaño:      {f.size_blocks} bloques",
            f"Estrategia:  {f.strategy}",
            f"Permisos:    {f.permissions}",
            f"Creado:      {f.created_at:%Y-%m-%d %H:%M:%S}",
            "",
        ]
        if f.strategy == "contiguous":
            lines.append(f"Inicio: {f.block_indices[0]}   Longitud: {f.size_blocks}")
        elif f.strategy == "linked":
            lines.append("Cadena de bloques (bloque -> siguiente):")
            lines += [f"  {block:>4} -> {nxt}" for block, nxt in link_table(f.block_indices)]
        else:
            lines.append(f"Bloque índice: {f.index_block}")
            lines += [f"  [{pos}] -> {block}" for pos, block in index_entries(f.block_indices)]
        return "\n".join(lines)


class LogView(ctk.CTkFrame):
    """Registro de actividad, el más reciente arriba."""

    def __init__(self, master, palette: Dict[str, str], **kwargs):
        super().__init__(master, **kwargs)
        self.configure(fg_color="transparent")
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.textbox = ctk.CTkTextbox(self, fg_color=palette["app_bg"], text_color=palette["text_light"])
        self.textbox.grid(row=0, column=0, sticky="nsew")

    def show(self, sim: FileSystemSimulator):
        self.textbox.configure(state="normal")
        self.textbox.delete("1.0", "end")
        self.textbox.insert("end", "\n".join(str(entry) for entry in reversed(sim.logs)))
        self.textbox.configure(state="disabled")


class MainView(ctk.CTkFrame):
    """
    Vista principal: sidebar con los comandos del simulador y las vistas de página.
    Cada comando pasa por `_run`, que muestra el error si el simulador lo rechaza
    y siempre refresca las vistas.
    """
    def __init__(self, master, sim: FileSystemSimulator, palette: Dict[str, str], **kwargs):
        super().__init__(master, **kwargs)
        self.sim = sim
        self.palette = palette
        self._op_index = 0

        self.configure(fg_color="transparent")
        self.grid_columnconfigure(1, weight=1)
        self.grid_rowconfigure(0, weight=1)

        # 1. Sidebar
        self.sidebar_frame = ctk.CTkFrame(self, width=200, corner_radius=10, fg_color=self.palette["frame_bg"])
        self.sidebar_frame.grid(row=0, column=0, sticky="nsw", padx=(0, 10))

        self.logo_label = ctk.CTkLabel(
            self.sidebar_frame, text="fsalloc",
            font=ctk.CTkFont(size=20, weight="bold"),
            text_color=self.palette["text_light"]
        )
        self.logo_label.grid(row=0, column=0, padx=20, pady=(20, 10))

        ctk.CTkLabel(self.sidebar_frame, text="Estrategia:", text_color=self.palette["text_light"]).grid(row=1, column=0, padx=20, sticky="w")
        self.strategy_var = ctk.StringVar(value=self.sim.strategy)
        self.strategy_combo = ctk.CTkComboBox(
            self.sidebar_frame, variable=self.strategy_var, values=strategy_names(),
            command=self.on_strategy_change, state="readonly",
            text_color=self.palette["text_on_button"],
            fg_color=self.palette["button"],
            button_color=self.palette["button"],
            border_color=self.palette["button"],
            dropdown_fg_color=self.palette["frame_bg"],
            dropdown_hover_color=self.palette["button_hover"],
            dropdown_text_color=self.palette["text_light"]
        )
        self.strategy_combo.grid(row=2, column=0, padx=20, pady=(0, 15))

        button_style = {
            "fg_color": self.palette["button"],
            "hover_color": self.palette["button_hover"],
            "text_color": self.palette["text_on_button"]
        }
        actions = [
            ("Crear archivo", self.on_create),
            ("Eliminar", self.on_delete),
            ("Renombrar", self.on_rename),
            ("Redimensionar", self.on_resize),
            ("Permisos", self.on_chmod),
            ("Tamaño de disco", self.on_resize_disk),
            ("Desfragmentar", self.on_defragment),
        ]
        row = 3
        for text, command in actions:
            ctk.CTkButton(self.sidebar_frame, text=text, command=command, **button_style).grid(row=row, column=0, padx=20, pady=5)
            row += 1

        self.sidebar_frame.grid_rowconfigure(row, weight=1)
        row += 1
        pages = [("Disco", "disk"), ("Archivos", "files"), ("Gráficos", "charts"), ("Registro", "log")]
        for text, name in pages:
            ctk.CTkButton(self.sidebar_frame, text=text, command=lambda n=name: self.select_frame(n), **button_style).grid(row=row, column=0, padx=20, pady=5)
            row += 1

        # 2. Vistas de página
        self.main_content_frame = ctk.CTkFrame(self, corner_radius=10, fg_color=self.palette["frame_bg"])
        self.main_content_frame.grid(row=0, column=1, sticky="nsew")
        self.main_content_frame.grid_columnconfigure(0, weight=1)
        self.main_content_frame.grid_rowconfigure(0, weight=1)

        self.disk_view = DiskView(self.main_content_frame, palette=self.palette, on_block_click=self.on_block_click)
        self.files_view = FilesView(self.main_content_frame, palette=self.palette, on_select=self.on_select_file)
        self.charts_view = ChartsView(self.main_content_frame, palette=self.palette)
        self.log_view = LogView(self.main_content_frame, palette=self.palette)

        self.frames = {
            "disk": self.disk_view,
            "files": self.files_view,
            "charts": self.charts_view,
            "log": self.log_view,
        }

        self.select_frame("disk")
        self.refresh()

    def select_frame(self, name: str):
        for frame_name, frame in self.frames.items():
            if frame_name == name:
                frame.grid(row=0, column=0, sticky="nsew", padx=10, pady=10)
            else:
                frame.grid_forget()

    def refresh(self):
        self.strategy_var.set(self.sim.strategy)
        self.disk_view.show_snapshot(self.sim.snapshot())
        self.files_view.show(self.sim)
        self.log_view.show(self.sim)

    # ------------------------------------------------------------------
    # Ejecución de comandos
    # ------------------------------------------------------------------
    def _run(self, operation: str, command: Callable[..., Any], *args) -> bool:
        self._op_index += 1
        try:
            command(*args)
        except SimulationError as e:
            messagebox.showerror("Operación rechazada", str(e))
            self.charts_view.record(
                trace_point(self.sim, self._op_index, operation, ok=False, error=type(e).__name__)
            )
            return False
        finally:
            self.refresh()
        self.charts_view.record(trace_point(self.sim, self._op_index, operation))
        return True

    def _ask(self, title: str, text: str) -> Optional[str]:
        value = ctk.CTkInputDialog(title=title, text=text).get_input()
        if value is None:
            return None
        return value.strip() or None

    def _ask_int(self, title: str, text: str) -> Optional[int]:
        value = self._ask(title, text)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            messagebox.showerror("Entrada inválida", f"'{value}' no es un número entero")
            return None

    def _selected_or_warn(self) -> Optional[str]:
        if self.sim.selected_file_id is None:
            messagebox.showinfo("Sin selección", "Seleccione un archivo primero (lista o disco).")
            return None
        return self.sim.selected_file_id

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------
    def on_strategy_change(self, value: str):
        self._run("strategy", self.sim.set_strategy, value)

    def on_block_click(self, file_id: Optional[str]):
        self.sim.select_file(file_id)
        self.refresh()

    def on_select_file(self, file_id: str):
        self.sim.select_file(file_id)
        self.refresh()

    def on_create(self):
        name = self._ask("Crear archivo", "Nombre del archivo:")
        if name is None:
            return
        size = self._ask_int("Crear archivo", "Tamaño en bloques:")
        if size is None:
            return
        self._run("create", self.sim.create_file, name, size)

    def on_delete(self):
        file_id = self._selected_or_warn()
        if file_id is None:
            return
        name = self.sim.get_file(file_id).name
        if messagebox.askyesno("Eliminar", f"¿Eliminar '{name}'?"):
            self._run("delete", self.sim.delete_file, file_id)

    def on_rename(self):
        file_id = self._selected_or_warn()
        if file_id is None:
            return
        new_name = self._ask("Renombrar", "Nuevo nombre:")
        if new_name is not None:
            self._run("rename", self.sim.rename_file, file_id, new_name)

    def on_resize(self):
        file_id = self._selected_or_warn()
        if file_id is None:
            return
        size = self._ask_int("Redimensionar", "Nuevo tamaño en bloques:")
        if size is not None:
            self._run("resize", self.sim.resize_file, file_id, size)

    def on_chmod(self):
        file_id = self._selected_or_warn()
        if file_id is None:
            return
        perms = self._ask("Permisos", "Permisos octales (ej. 644):")
        if perms is not None:
            self._run("chmod", self.sim.chmod, file_id, perms)

    def on_resize_disk(self):
        size = self._ask_int("Tamaño de disco", f"Nuevo tamaño (actual {self.sim.disk_size}):")
        if size is not None:
            self._run("disk_resize", self.sim.resize_disk, size)

    def on_defragment(self):
        self._run("defragment", self.sim.defragment)
