from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .disk import Disk


@dataclass(frozen=True)
class FragmentationReport:
    total_free_blocks: int
    largest_free_segment: int
    external_fragmentation: float

    @property
    def external_fragmentation_pct(self) -> float:
        return 100.0 * self.external_fragmentation


class FreeSpaceMap:
    """
    Vista de solo lectura del espacio disponible, sobre un bitmap (0 = libre,
    1 = ocupado). Las estrategias de asignación consultan esta vista y nunca
    tocan el disco: quien llama decide si confirma el resultado.

    `from_disk(disk, reclaim_owner=fid)` marca como disponibles también los
    bloques de `fid`, que es lo que necesita el redimensionado.
    """

    def __init__(self, bitmap: Sequence[int]) -> None:
        self.bitmap: List[int] = [1 if bit else 0 for bit in bitmap]
        self.n_blocks: int = len(self.bitmap)

    @classmethod
    def from_disk(cls, disk: "Disk", *, reclaim_owner: Optional[str] = None) -> "FreeSpaceMap":
        return cls(
            [0 if owner is None or owner == reclaim_owner else 1 for owner in disk.owners()]
        )

    # ------------------------------------------------------------------
    # Búsquedas para asignación
    # ------------------------------------------------------------------
    def find_first_fit(self, needed: int) -> Optional[int]:
        """
        Primer inicio `s` (el más bajo) tal que `s..s+needed-1` están libres.

        Si un bloque ocupado aparece en la posición `s+k`, ninguna ventana que
        empiece en `s..s+k` puede servir, así que se salta a `s+k+1`. El
        resultado es el mismo que probar todos los inicios en orden.
        """
        if needed <= 0:
            raise ValueError("needed debe ser > 0")
        start = 0
        last_start = self.n_blocks - needed
        while start <= last_start:
            for offset in range(needed):
                if self.bitmap[start + offset]:
                    start += offset + 1
                    break
            else:
                return start
        return None

    def first_free(self, n: int) -> List[int]:
        """Hasta `n` bloques libres en orden ascendente (puede devolver menos)."""
        if n <= 0:
            raise ValueError("n debe ser > 0")
        indices: List[int] = []
        for i, bit in enumerate(self.bitmap):
            if bit == 0:
                indices.append(i)
                if len(indices) == n:
                    break
        return indices

    def free_indices(self) -> List[int]:
        return [i for i, bit in enumerate(self.bitmap) if bit == 0]

    # ------------------------------------------------------------------
    # Estadísticas
    # ------------------------------------------------------------------
    def used_count(self) -> int:
        return sum(self.bitmap)

    def free_count(self) -> int:
        return self.n_blocks - self.used_count()

    def occupancy_pct(self) -> float:
        if self.n_blocks == 0:
            return 0.0
        return 100.0 * (self.used_count() / self.n_blocks)

    def free_runs(self) -> List[Tuple[int, int]]:
        """Tramos libres maximales como (inicio, largo). El disco es lineal."""
        runs: List[Tuple[int, int]] = []
        run_len = 0
        run_start = 0
        for i, bit in enumerate(self.bitmap):
            if bit == 0:
                if run_len == 0:
                    run_start = i
                run_len += 1
            else:
                if run_len > 0:
                    runs.append((run_start, run_len))
                run_len = 0
        if run_len > 0:
            runs.append((run_start, run_len))
        return runs

    def largest_free_run_size(self) -> int:
        runs = self.free_runs()
        return 0 if not runs else max(length for _, length in runs)

    def external_fragmentation_ratio(self) -> float:
        """1 - (tramo libre más largo / bloques libres); 0 si no hay libres."""
        total_free = self.free_count()
        if total_free == 0:
            return 0.0
        largest = self.largest_free_run_size()
        return 1.0 - (largest / total_free)

    def report(self) -> FragmentationReport:
        return FragmentationReport(
            total_free_blocks=self.free_count(),
            largest_free_segment=self.largest_free_run_size(),
            external_fragmentation=self.external_fragmentation_ratio(),
        )

    def snapshot_bitmap(self) -> List[int]:
        return list(self.bitmap)


def fragmentation_report(disk: "Disk") -> FragmentationReport:
    """Fragmentación externa del disco actual (solo bloques realmente libres)."""
    return FreeSpaceMap.from_disk(disk).report()
