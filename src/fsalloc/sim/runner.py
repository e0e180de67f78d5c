from __future__ import annotations
import csv, json
from pathlib import Path
from typing import Dict, Any, List, Callable, Optional

from ..core.errors import NotFoundError, SimulationError
from .metrics import summarize, trace_point
from .scenario_definitions import get_config
from .simulator import FileSystemSimulator


def _file_id(sim: FileSystemSimulator, name: str) -> str:
    f = sim.find_by_name(name)
    if f is None:
        raise NotFoundError(name)
    return f.id


# Cada op del escenario -> llamada al simulador. Los archivos se referencian por nombre.
OP_HANDLERS: Dict[str, Callable[[FileSystemSimulator, Dict[str, Any]], Any]] = {
    "create": lambda sim, op: sim.create_file(op["name"], op["size_blocks"]),
    "delete": lambda sim, op: sim.delete_file(_file_id(sim, op["name"])),
    "rename": lambda sim, op: sim.rename_file(_file_id(sim, op["name"]), op["new_name"]),
    "resize": lambda sim, op: sim.resize_file(_file_id(sim, op["name"]), op["size_blocks"]),
    "chmod": lambda sim, op: sim.chmod(_file_id(sim, op["name"]), op["permissions"]),
    "strategy": lambda sim, op: sim.set_strategy(op["strategy"]),
    "disk_resize": lambda sim, op: sim.resize_disk(op["disk_size"]),
    "defragment": lambda sim, op: sim.defragment(),
}


def apply_op(sim: FileSystemSimulator, op: Dict[str, Any]) -> Any:
    handler = OP_HANDLERS.get(op.get("op"))
    if handler is None:
        raise KeyError(f"Operación inválida: {op.get('op')}")
    return handler(sim, op)


def run_scenario(
    scenario: str | None,
    scenarios_path: str | None = None,
    overrides: Optional[Dict[str, Any]] = None,
    out: str | None = None,
    on_bitmap_update: Optional[Callable[[List[int]], None]] = None,
    on_event: Optional[Callable[..., None]] = None,
) -> Dict[str, Any]:
    """
    Ejecuta un escenario guionado y devuelve su resumen.

    Un rechazo del simulador (SimulationError) no corta la corrida: la op se
    registra como fallida (miss) con su mensaje y se sigue con la siguiente.
    """
    cfg = get_config(scenario, scenarios_path, overrides)

    sim = FileSystemSimulator(cfg["disk_size"], cfg["strategy"], on_event=on_event)

    op_traces: List[Dict[str, Any]] = []
    for op_idx, op in enumerate(cfg["ops"]):
        op_name = op["op"]
        try:
            apply_op(sim, op)
        except SimulationError as e:
            trace = trace_point(sim, op_idx, op_name, ok=False, error=str(e))
            trace["error_type"] = type(e).__name__
        else:
            trace = trace_point(sim, op_idx, op_name)
        trace["name"] = op.get("name")
        op_traces.append(trace)

        if on_bitmap_update:
            on_bitmap_update(sim.bitmap())

    summary: Dict[str, Any] = summarize(op_traces)
    summary["_scenario"] = scenario or "overrides-only"
    summary["final_disk_size"] = sim.disk_size
    summary["final_strategy"] = sim.strategy
    summary["files_manifest"] = [
        {
            "name": f.name,
            "size_blocks": f.size_blocks,
            "strategy": f.strategy,
            "permissions": f.permissions,
            "index_block": f.index_block,
            "block_indices": list(f.block_indices),
        }
        for f in sim.list_files()
    ]
    summary["op_traces"] = op_traces
    summary["logs"] = [str(entry) for entry in sim.logs]
    summary["final_bitmap"] = sim.bitmap()

    if out:
        p = Path(out)
        p.parent.mkdir(parents=True, exist_ok=True)
        if p.suffix.lower() == ".csv":
            key_order = [
                "op_index", "operation", "name", "ok", "error", "strategy",
                "disk_size", "files_stored", "used_blocks", "free_blocks",
                "largest_free_segment", "space_usage_pct", "external_frag_pct",
                "blocks_allocated", "blocks_freed",
            ]
            with p.open("w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(key_order)
                for trace in op_traces:
                    writer.writerow([trace.get(k, "") for k in key_order])
        else:
            with p.open("w", encoding="utf-8") as f:
                json.dump(summary, f, indent=2, ensure_ascii=False)

    return summary
