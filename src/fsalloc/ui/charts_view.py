import customtkinter as ctk
from typing import Dict, Any, List
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
import numpy as np  # media móvil

# --- Matplotlib Styling (solo dentro de esta vista) ---
CHART_STYLE = "dark_background"

# Claves de la traza a graficar (etiqueta del eje Y)
TIMESERIES_PLOTS = {
    "external_frag_pct": "Frag. Externa (%)",
    "space_usage_pct": "Uso Espacio (%)",
}

SMOOTHING_WINDOWS = [1, 3, 5, 10]


class ChartsView(ctk.CTkFrame):
    """
    Evolución de la fragmentación externa y del uso del disco, una muestra por
    operación ejecutada desde la UI.
    """

    def __init__(self, master, palette: Dict[str, str], **kwargs):
        super().__init__(master, **kwargs)
        self.palette = palette
        self.configure(fg_color="transparent")
        self._traces: List[Dict[str, Any]] = []

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        controls_frame = ctk.CTkFrame(self, fg_color="transparent")
        controls_frame.grid(row=0, column=0, sticky="ew", padx=10, pady=(0, 10))

        ctk.CTkLabel(controls_frame, text="Media móvil (ops):", text_color=self.palette["text_light"]).grid(row=0, column=0, padx=(0, 10), sticky="w")
        self.window_var = ctk.StringVar(value=str(SMOOTHING_WINDOWS[0]))
        self.window_combo = ctk.CTkComboBox(
            controls_frame, variable=self.window_var, values=[str(w) for w in SMOOTHING_WINDOWS],
            command=lambda _value: self.redraw(), width=80,
            text_color=self.palette["text_on_button"],
            fg_color=self.palette["button"],
            button_color=self.palette["button"],
            border_color=self.palette["button"],
            dropdown_fg_color=self.palette["frame_bg"],
            dropdown_hover_color=self.palette["button_hover"],
            dropdown_text_color=self.palette["text_light"]
        )
        self.window_combo.grid(row=0, column=1, sticky="w")

        with plt.style.context(CHART_STYLE):
            self.fig = Figure(figsize=(8, 5), dpi=100, facecolor=self.palette["frame_bg"])
            self.axes = {key: self.fig.add_subplot(len(TIMESERIES_PLOTS), 1, i + 1)
                         for i, key in enumerate(TIMESERIES_PLOTS)}
        self.fig.subplots_adjust(left=0.1, right=0.95, top=0.93, bottom=0.1, hspace=0.45)

        self.canvas = FigureCanvasTkAgg(self.fig, master=self)
        self.canvas.get_tk_widget().grid(row=1, column=0, sticky="nsew", padx=10, pady=10)
        self.redraw()

    def record(self, trace: Dict[str, Any]):
        self._traces.append(trace)
        self.redraw()

    def _window(self) -> int:
        try:
            return max(1, int(self.window_var.get()))
        except ValueError:
            return SMOOTHING_WINDOWS[0]

    def redraw(self):
        with plt.style.context(CHART_STYLE):
            self._draw_series(self._window())
        self.canvas.draw()

    def _draw_series(self, window: int):
        x_data = np.arange(len(self._traces))
        for key, ax in self.axes.items():
            label = TIMESERIES_PLOTS[key]
            y_data = np.array([t.get(key, 0.0) for t in self._traces], dtype=float)

            ax.clear()
            ax.set_facecolor(self.palette["app_bg"])
            ax.tick_params(axis='x', colors=self.palette["text_light"])
            ax.tick_params(axis='y', colors=self.palette["text_light"])
            if len(y_data) == 0:
                ax.text(0.5, 0.5, "Sin operaciones todavía", ha='center', va='center',
                        color=self.palette["text_light"], transform=ax.transAxes)
            else:
                ax.plot(x_data, y_data, color=self.palette["button_hover"], linewidth=1.5, marker="o", markersize=3)
                if window > 1 and len(y_data) >= window:
                    weights = np.ones(window) / window
                    smooth = np.convolve(y_data, weights, mode='valid')
                    ax.plot(x_data[window - 1:], smooth, color="#F3A712", linewidth=1.2, linestyle="--")
            ax.set_title(label, color=self.palette["text_light"])
            ax.set_ylim(0, 100)
            ax.grid(True, linestyle='--', alpha=0.3, color=self.palette["text_light"])
        self.axes[list(TIMESERIES_PLOTS)[-1]].set_xlabel("Índice de Operación", color=self.palette["text_light"])
