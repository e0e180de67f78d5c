import sys
import os
import platform
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..core.disk import INITIAL_DISK_SIZE, MAX_DISK_BLOCKS
from ..core.errors import SimulationError
from ..core.file_entry import FileRecord
from ..fs_strategies import STRATEGIES
from ..fs_strategies.indexed import index_entries
from ..fs_strategies.linked import END_OF_FILE_MARKER, link_table
from ..sim.metrics import Metrics
from ..sim.runner import run_scenario
from ..sim.scenario_definitions import available_scenarios
from ..sim.simulator import FileSystemSimulator, Snapshot

SCENARIOS_JSON_PATH = "data/scenarios.json"
RESULTS_DIR = Path("results")
MAP_COLUMNS = 50
LOG_PREVIEW_COUNT = 20

STRATEGY_NAMES_ES = {
    "contiguous": "Asignación Contigua",
    "linked": "Asignación Enlazada",
    "indexed": "Asignación Indexada",
}

FREE_SYMBOL = "."
INDEX_SYMBOL = "#"
_FILE_SYMBOLS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789abcdefghijklmnopqrstuvwxyz"


# ----------------------------------------------------------------------
# Presentación
# ----------------------------------------------------------------------
def clear_screen():
    if platform.system() == "Windows":
        os.system("cls")
    else:
        os.system("clear")


def print_header(title: str):
    print("\n" + "=" * 60)
    print(f"    {title.upper()}")
    print("=" * 60)


def print_error(message: str):
    print(f"\n[ERROR]: {message}")


def print_success(message: str):
    print(f"\n[EXITO]: {message}")


def pause():
    input("\n... Presiona Enter para continuar ...")


def file_symbols(files: List[FileRecord]) -> Dict[str, str]:
    """Un carácter por archivo, en orden de catálogo (se recicla si hay muchos)."""
    return {f.id: _FILE_SYMBOLS[i % len(_FILE_SYMBOLS)] for i, f in enumerate(files)}


def render_disk_map(snapshot: Snapshot, columns: int = MAP_COLUMNS) -> List[str]:
    """
    Mapa de texto del disco: '.' libre, '#' bloque índice y un carácter por
    archivo para los bloques de datos. Cada fila empieza con su primer índice.
    """
    symbols = file_symbols(list(snapshot.files))
    index_blocks = {f.index_block for f in snapshot.files if f.index_block is not None}

    cells = []
    for i, owner in enumerate(snapshot.owners):
        if owner is None:
            cells.append(FREE_SYMBOL)
        elif i in index_blocks:
            cells.append(INDEX_SYMBOL)
        else:
            cells.append(symbols.get(owner, "?"))

    width = len(str(max(snapshot.disk_size - 1, 0)))
    return [
        f"{row_start:>{width}} | {''.join(cells[row_start:row_start + columns])}"
        for row_start in range(0, len(cells), columns)
    ]


def format_file_table(files: List[FileRecord], selected_id: Optional[str] = None) -> List[str]:
    symbols = file_symbols(files)
    lines = [f"    {'':2}{'Sím':<4} {'Nombre':<20} {'Tam':<5} {'Estrategia':<11} {'Perm':<5} {'Bloques'}"]
    for f in files:
        mark = "*" if f.id == selected_id else " "
        blocks = ",".join(str(b) for b in f.block_indices)
        if len(blocks) > 30:
            blocks = blocks[:27] + "..."
        if f.index_block is not None:
            blocks = f"[{f.index_block}] {blocks}"
        lines.append(
            f"    {mark} {symbols[f.id]:<4} {f.name[:20]:<20} {f.size_blocks:<5} "
            f"{f.strategy:<11} {f.permissions:<5} {blocks}"
        )
    return lines


def print_fragmentation(sim: FileSystemSimulator):
    frag = sim.fragmentation()
    print(f"\n  Bloques libres:        {frag.total_free_blocks} de {sim.disk_size}")
    print(f"  Tramo libre más largo: {frag.largest_free_segment}")
    print(f"  Frag. externa:         {frag.external_fragmentation_pct:.0f} %"
          "   (1 - tramo más largo / libres)")


# ----------------------------------------------------------------------
# Entrada
# ----------------------------------------------------------------------
def _ask_int(prompt: str) -> Optional[int]:
    raw = input(prompt).strip()
    try:
        return int(raw)
    except ValueError:
        print_error("Entrada invalida. Debe ser un numero entero.")
        return None


def _pick_file(sim: FileSystemSimulator) -> Optional[FileRecord]:
    files = sim.list_files()
    if not files:
        print_error("No hay archivos en el disco.")
        return None
    for i, f in enumerate(files):
        print(f"  {i + 1}) {f.name} ({f.size_blocks} bloques, {f.strategy})")
    raw = input("Elige un archivo (numero o nombre): ").strip()
    if raw.isdigit() and 1 <= int(raw) <= len(files):
        return files[int(raw) - 1]
    if raw:
        found = sim.find_by_name(raw)
        if found is not None:
            return found
    print_error("Seleccion invalida.")
    return None


# ----------------------------------------------------------------------
# Acciones
# ----------------------------------------------------------------------
def do_show_disk(sim: FileSystemSimulator):
    snap = sim.snapshot()
    print_header(f"Disco ({snap.disk_size} bloques, estrategia activa: {snap.strategy})")
    for line in render_disk_map(snap):
        print("  " + line)
    print(f"\n  Leyenda: '{FREE_SYMBOL}' libre, '{INDEX_SYMBOL}' bloque índice")
    print_fragmentation(sim)


def do_list_files(sim: FileSystemSimulator):
    print_header("Archivos")
    files = sim.list_files()
    if not files:
        print("  (sin archivos)")
        return
    for line in format_file_table(files, sim.selected_file_id):
        print(line)
    largest = sim.largest_file()
    if largest is not None:
        print(f"\n  Archivo más grande: {largest.name} ({largest.size_blocks} bloques)")


def do_file_detail(sim: FileSystemSimulator):
    print_header("Detalle de Archivo")
    f = _pick_file(sim)
    if f is None:
        return
    sim.select_file(f.id)
    print(f"\n  Nombre:      {f.name}")
    print(f"  Tamaño:      {f.size_blocks} bloques de datos ({f.total_blocks} en total)")
    print(f"  Estrategia:  {f.strategy} ({STRATEGY_NAMES_ES.get(f.strategy, f.strategy)})")
    print(f"  Permisos:    {f.permissions}")
    print(f"  Creado:      {f.created_at:%Y-%m-%d %H:%M:%S}")

    if f.strategy == "linked":
        print("\n  Cadena de bloques:")
        for block, next_block in link_table(f.block_indices):
            target = "FIN" if next_block == END_OF_FILE_MARKER else str(next_block)
            print(f"    {block:>4} -> {target}")
    elif f.strategy == "indexed":
        print(f"\n  Bloque índice {f.index_block}:")
        for logical, physical in index_entries(f.block_indices):
            print(f"    [{logical:>3}] -> {physical}")
    else:
        start = f.block_indices[0]
        print(f"\n  Tramo: inicio {start}, largo {f.size_blocks} ({start}..{start + f.size_blocks - 1})")


def do_create(sim: FileSystemSimulator):
    print_header(f"Crear Archivo ({sim.strategy})")
    name = input("  Nombre del archivo (sin extension se agrega .txt): ")
    size = _ask_int("  Tamano en bloques: ")
    if size is None:
        return
    try:
        f = sim.create_file(name, size)
    except SimulationError as e:
        print_error(str(e))
        return
    blocks = f"índice {f.index_block}, datos {f.block_indices}" if f.index_block is not None \
        else f"bloques {f.block_indices}"
    print_success(f"Archivo '{f.name}' creado con {f.strategy}: {blocks}")


def do_delete(sim: FileSystemSimulator):
    print_header("Eliminar Archivo")
    f = _pick_file(sim)
    if f is None:
        return
    try:
        sim.delete_file(f.id)
    except SimulationError as e:
        print_error(str(e))
        return
    print_success(f"Archivo '{f.name}' eliminado ({f.total_blocks} bloques liberados).")


def do_rename(sim: FileSystemSimulator):
    print_header("Renombrar Archivo")
    f = _pick_file(sim)
    if f is None:
        return
    new_name = input(f"  Nuevo nombre para '{f.name}': ")
    try:
        renamed = sim.rename_file(f.id, new_name)
    except SimulationError as e:
        print_error(str(e))
        return
    print_success(f"Archivo renombrado a '{renamed.name}'.")


def do_resize(sim: FileSystemSimulator):
    print_header(f"Redimensionar Archivo (se reasigna con {sim.strategy})")
    f = _pick_file(sim)
    if f is None:
        return
    size = _ask_int(f"  Nuevo tamano para '{f.name}' (actual {f.size_blocks}): ")
    if size is None:
        return
    try:
        sim.resize_file(f.id, size)
    except SimulationError as e:
        print_error(str(e))
        return
    changes = sim.last_changes
    print_success(
        f"'{f.name}' reasignado a {size} bloques. "
        f"Nuevos: {list(changes.allocated)} | Liberados: {list(changes.freed)}"
    )


def do_chmod(sim: FileSystemSimulator):
    print_header("Cambiar Permisos")
    f = _pick_file(sim)
    if f is None:
        return
    perms = input(f"  Permisos para '{f.name}' (actual {f.permissions}, ej. 755): ").strip()
    try:
        sim.chmod(f.id, perms)
    except SimulationError as e:
        print_error(str(e))
        return
    print_success(f"Permisos de '{f.name}' ahora son {perms}.")


def do_set_strategy(sim: FileSystemSimulator):
    print_header("Estrategia de Asignación")
    print("Solo afecta a las próximas creaciones y redimensionados.")
    strat_list = list(STRATEGIES.keys())
    for i, s in enumerate(strat_list):
        active = " (activa)" if s == sim.strategy else ""
        print(f"  {i + 1}) {s} ({STRATEGY_NAMES_ES.get(s, s)}){active}")
    try:
        choice = int(input("Elige una estrategia (numero): ")) - 1
        if choice < 0:
            raise IndexError(choice)
        strategy_name = strat_list[choice]
    except (ValueError, IndexError):
        print_error("Seleccion invalida.")
        return
    sim.set_strategy(strategy_name)
    print_success(f"Estrategia activa: {strategy_name}.")


def do_resize_disk(sim: FileSystemSimulator):
    print_header("Tamaño de Disco")
    size = _ask_int(f"  Nuevo tamano (actual {sim.disk_size}, max {MAX_DISK_BLOCKS}): ")
    if size is None:
        return
    try:
        sim.resize_disk(size)
    except SimulationError as e:
        print_error(str(e))
        return
    print_success(f"El disco ahora tiene {size} bloques.")


def do_defragment(sim: FileSystemSimulator):
    print_header("Desfragmentar")
    before = sim.fragmentation()
    sim.defragment()
    after = sim.fragmentation()
    print_success(
        "Desfragmentación completada. Frag. externa: "
        f"{before.external_fragmentation_pct:.0f} % -> {after.external_fragmentation_pct:.0f} %"
    )


def do_show_log(sim: FileSystemSimulator):
    print_header("Registro de Actividad")
    entries = sim.logs
    for entry in entries[-LOG_PREVIEW_COUNT:]:
        print(f"  {entry}")
    if len(entries) > LOG_PREVIEW_COUNT:
        print(f"  ... ({len(entries) - LOG_PREVIEW_COUNT} entradas anteriores)")


def do_run_scenario(sim: FileSystemSimulator):
    print_header("Ejecutar Escenario")
    try:
        scen_map = available_scenarios(SCENARIOS_JSON_PATH)
    except ValueError as e:
        print_error(f"No se pudieron cargar escenarios: {e}")
        return
    scen_list = list(scen_map.keys())
    for i, s in enumerate(scen_list):
        print(f"  {i + 1}) {s}: {scen_map[s]}")
    try:
        choice = int(input("Elige un escenario (numero): ")) - 1
        if choice < 0:
            raise IndexError(choice)
        scenario = scen_list[choice]
    except (ValueError, IndexError):
        print_error("Seleccion invalida.")
        return

    out_path = None
    save_choice = input("\n¿Guardar los resultados en 'results/'? (s/n) [n]: ").lower().strip()
    if save_choice == "s":
        out_path = RESULTS_DIR / f"scenario_{scenario}.json"

    try:
        summary = run_scenario(
            scenario,
            scenarios_path=SCENARIOS_JSON_PATH,
            out=str(out_path) if out_path else None,
        )
    except (KeyError, ValueError) as e:
        print_error(f"El escenario falló: {e}")
        return

    print("\n  Operaciones:")
    for trace in summary["op_traces"]:
        status = "ok " if trace["ok"] else "ERR"
        target = f" {trace['name']}" if trace.get("name") else ""
        print(f"    {trace['op_index']:>3} {status} {trace['operation']}{target}"
              f"  frag={trace['external_frag_pct']:.0f}%  uso={trace['space_usage_pct']:.0f}%")
        if trace["error"]:
            print(f"          {trace['error']}")
    print(f"\n  Aciertos: {summary['hits']}  Fallos: {summary['misses']}"
          f"  Frag. externa media: {summary['fragmentation_external_pct']:.2f} %")
    if out_path:
        print_success(f"Resultados guardados en {out_path}")


def do_export_metrics(sim: FileSystemSimulator):
    print_header("Exportar Métricas")
    metrics = Metrics(sim)
    metrics.print_summary()
    fmt = input("\nFormato (json/csv) [json]: ").strip().lower() or "json"
    if fmt == "csv":
        metrics.export_csv(str(RESULTS_DIR / "metrics.csv"))
    elif fmt == "json":
        metrics.export_json(str(RESULTS_DIR / "metrics.json"))
    else:
        print_error("Formato no soportado. Use json o csv.")


def do_exit(sim: FileSystemSimulator):
    clear_screen()
    print("\nPrograma Finalizado\n")
    sys.exit()


MENU = [
    ("Ver mapa del disco", do_show_disk),
    ("Listar archivos", do_list_files),
    ("Detalle de un archivo", do_file_detail),
    ("Crear archivo", do_create),
    ("Eliminar archivo", do_delete),
    ("Renombrar archivo", do_rename),
    ("Redimensionar archivo", do_resize),
    ("Cambiar permisos", do_chmod),
    ("Cambiar estrategia de asignación", do_set_strategy),
    ("Cambiar tamaño de disco", do_resize_disk),
    ("Desfragmentar", do_defragment),
    ("Registro de actividad", do_show_log),
    ("Ejecutar un escenario guionado", do_run_scenario),
    ("Exportar métricas", do_export_metrics),
    ("Salir", do_exit),
]


def print_menu(sim: FileSystemSimulator):
    print_header("Simulador de Asignación de Bloques")
    frag = sim.fragmentation()
    print(f"  Disco: {sim.disk_size} bloques | Libres: {frag.total_free_blocks}"
          f" | Estrategia: {sim.strategy} | Frag.: {frag.external_fragmentation_pct:.0f} %")
    print("-" * 60)
    for i, (label, _) in enumerate(MENU):
        print(f"  {i + 1:>2}. {label}")
    print("-" * 60)


def main():
    try:
        RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print_error(f"No se pudo crear el directorio 'results': {e}")
        sys.exit(1)

    sim = FileSystemSimulator(INITIAL_DISK_SIZE)
    menu_options: Dict[str, Callable[[FileSystemSimulator], None]] = {
        str(i + 1): action for i, (_, action) in enumerate(MENU)
    }

    while True:
        clear_screen()
        print_menu(sim)
        choice = input(f"Selecciona una opcion (1-{len(MENU)}): ").strip()

        action = menu_options.get(choice)

        if action:
            clear_screen()
            action(sim)
        else:
            print_error("Opcion no valida.")
        pause()


if __name__ == "__main__":
    main()
