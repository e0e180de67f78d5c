import customtkinter as ctk

from ..core.disk import INITIAL_DISK_SIZE
from ..sim.simulator import FileSystemSimulator
from .main_view import MainView

PALETTE = {
    "app_bg": "#320A6B",        # Fondo más oscuro
    "frame_bg": "#065084",      # Fondo de frames/sidebar
    "button": "#0F828C",        # Color de botones
    "button_hover": "#78B9B5",  # Hover y acentos
    "text_light": "#78B9B5",    # Texto principal
    "text_on_button": "#FFFFFF" # Texto sobre botones
}


def main():
    """
    Punto de entrada de la UI de escritorio. Necesita un entorno gráfico;
    sin DISPLAY usar la CLI (`fsalloc` o `python -m fsalloc`).
    """
    ctk.set_appearance_mode("dark")

    app = ctk.CTk()
    app.title("fsalloc - Asignación de Bloques")
    app.geometry("1150x720")
    app.configure(fg_color=PALETTE["app_bg"])

    sim = FileSystemSimulator(INITIAL_DISK_SIZE)
    main_view = MainView(master=app, sim=sim, palette=PALETTE)
    main_view.pack(fill="both", expand=True, padx=10, pady=10)

    app.mainloop()


if __name__ == "__main__":
    main()
