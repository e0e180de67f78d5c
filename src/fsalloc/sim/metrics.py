from __future__ import annotations
from typing import Dict, Any, List, Optional
import json
import csv
import statistics

from .simulator import FileSystemSimulator


def trace_point(
    sim: FileSystemSimulator,
    op_index: int,
    operation: str,
    *,
    ok: bool = True,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    """Foto del disco después de una operación (una fila de traza)."""
    frag = sim.fragmentation()
    stats = sim.stats()
    changes = sim.last_changes
    return {
        "op_index": op_index,
        "operation": operation,
        "ok": ok,
        "error": error,
        "strategy": sim.strategy,
        "disk_size": sim.disk_size,
        "files_stored": len(sim.list_files()),
        "used_blocks": stats["used_blocks"],
        "free_blocks": stats["free_blocks"],
        "largest_free_segment": frag.largest_free_segment,
        "space_usage_pct": round(100.0 * stats["used_blocks"] / max(stats["total_blocks"], 1), 2),
        "external_frag_pct": round(frag.external_fragmentation_pct, 2),
        "blocks_allocated": len(changes.allocated) if ok else 0,
        "blocks_freed": len(changes.freed) if ok else 0,
    }


def summarize(traces: List[Dict[str, Any]]) -> Dict[str, float]:
    """
    Promedios de una corrida a partir de sus trazas.
    """
    if not traces:
        return {
            "ops_count": 0,
            "hits": 0,
            "misses": 0,
            "hit_miss_ratio": 0.0,
            "space_usage_pct": 0.0,
            "fragmentation_external_pct": 0.0,
            "fragmentation_external_max_pct": 0.0,
            "fragmentation_external_stdev": 0.0,
        }

    n = len(traces)
    hits = sum(1 for t in traces if t.get("ok"))
    misses = n - hits
    frags = [float(t.get("external_frag_pct", 0.0)) for t in traces]
    avg_usage = sum(float(t.get("space_usage_pct", 0.0)) for t in traces) / n

    return {
        "ops_count": n,
        "hits": hits,
        "misses": misses,
        "hit_miss_ratio": round(100.0 * hits / n, 2),
        "space_usage_pct": round(avg_usage, 2),
        "fragmentation_external_pct": round(sum(frags) / n, 2),
        "fragmentation_external_max_pct": round(max(frags), 2),
        "fragmentation_external_stdev": round(statistics.pstdev(frags), 2) if n > 1 else 0.0,
    }


class Metrics:
    def __init__(self, sim: FileSystemSimulator):
        self.sim = sim

    def compute(self) -> Dict[str, Any]:
        """Calcula métricas actuales del sistema."""
        stats = self.sim.stats()
        frag = self.sim.fragmentation()
        files = self.sim.list_files()
        largest = self.sim.largest_file()

        per_strategy: Dict[str, int] = {"contiguous": 0, "linked": 0, "indexed": 0}
        for f in files:
            per_strategy[f.strategy] = per_strategy.get(f.strategy, 0) + 1

        return {
            "total_blocks": stats["total_blocks"],
            "used_blocks": stats["used_blocks"],
            "free_blocks": stats["free_blocks"],
            "index_blocks": stats["index_blocks"],
            "space_usage_pct": round((stats["used_blocks"] / stats["total_blocks"]) * 100, 2),
            "largest_free_segment": frag.largest_free_segment,
            "fragmentation_external_pct": round(frag.external_fragmentation_pct, 2),
            "files_stored": len(files),
            "files_contiguous": per_strategy["contiguous"],
            "files_linked": per_strategy["linked"],
            "files_indexed": per_strategy["indexed"],
            "largest_file": largest.name if largest else "",
            "active_strategy": self.sim.strategy,
        }

    def print_summary(self):
        m = self.compute()
        print("\n===== MÉTRICAS DEL SISTEMA =====")
        for k, v in m.items():
            print(f"{k}: {v}")

    def export_json(self, path: str = "metrics.json"):
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.compute(), f, indent=4)
        print(f"Métricas exportadas a {path}")

    def export_csv(self, path: str = "metrics.csv"):
        m = self.compute()
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Métrica", "Valor"])
            for k, v in m.items():
                writer.writerow([k, v])
        print(f"Métricas exportadas a {path}")
