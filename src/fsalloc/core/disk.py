from __future__ import annotations
from typing import Iterable, Iterator, List, Optional, Sequence

from .block import Block
from .errors import InvalidSizeError, OccupiedShrinkRegionError

INITIAL_DISK_SIZE = 250
MAX_DISK_BLOCKS = 1000


class Disk:
    """
    Disco lógico en memoria: tabla ordenada de bloques `0..n_blocks-1`.

    Semántica:
      - Cada bloque está libre o pertenece a exactamente un archivo (por id).
      - Los índices son siempre densos; crecer agrega bloques libres al final y
        encoger solo recorta bloques del final.
      - No valida reglas de asignación: eso lo hacen las estrategias. Acá solo se
        protege la propiedad "un dueño por bloque".
    """

    # ------------------------------------------------------------------
    # Construcción
    # ------------------------------------------------------------------
    def __init__(self, n_blocks: int = INITIAL_DISK_SIZE) -> None:
        self._check_size(n_blocks)
        self._storage: List[Block] = [Block(i) for i in range(int(n_blocks))]

    @classmethod
    def from_owners(cls, owners: Sequence[Optional[str]]) -> "Disk":
        """Reconstruye un disco a partir de la lista de dueños por bloque."""
        disk = cls(len(owners))
        for block, owner in zip(disk._storage, owners):
            if owner is not None:
                block.assign(owner)
        return disk

    def copy(self) -> "Disk":
        return Disk.from_owners(self.owners())

    @property
    def n_blocks(self) -> int:
        return len(self._storage)

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def owner(self, i: int) -> Optional[str]:
        self._check_index(i)
        return self._storage[i].file_id

    def is_free(self, i: int) -> bool:
        self._check_index(i)
        return self._storage[i].is_free

    def owners(self) -> List[Optional[str]]:
        return [b.file_id for b in self._storage]

    def bitmap(self) -> List[int]:
        """0 = libre, 1 = ocupado (misma convención que el FreeSpaceMap)."""
        return [0 if b.is_free else 1 for b in self._storage]

    def blocks_of(self, file_id: str) -> List[int]:
        return [b.index for b in self._storage if b.file_id == file_id]

    def free_indices(self) -> List[int]:
        return [b.index for b in self._storage if b.is_free]

    def used_blocks_count(self) -> int:
        return sum(1 for b in self._storage if not b.is_free)

    def free_blocks_count(self) -> int:
        return self.n_blocks - self.used_blocks_count()

    def occupied_from(self, start: int) -> List[int]:
        """Bloques ocupados con índice >= start (zona que se perdería al encoger)."""
        return [b.index for b in self._storage[start:] if not b.is_free]

    def iter_blocks(self) -> Iterator[Block]:
        """Iterador sobre los bloques físicos (para visualización). No copiar."""
        return iter(self._storage)

    def __len__(self) -> int:
        return self.n_blocks

    # ------------------------------------------------------------------
    # Mutaciones
    # ------------------------------------------------------------------
    def assign(self, indices: Iterable[int], file_id: str) -> None:
        """
        Marca `indices` como propiedad de `file_id`.
        Un bloque que ya es de `file_id` se deja igual; uno de otro archivo es error.
        """
        idxs = list(indices)
        self._check_indices(idxs)
        for i in idxs:
            current = self._storage[i].file_id
            if current is not None and current != file_id:
                raise ValueError(f"El bloque {i} ya está ocupado por otro archivo")
        for i in idxs:
            self._storage[i].assign(file_id)

    def release(self, indices: Iterable[int], file_id: Optional[str] = None) -> None:
        """
        Libera `indices`. Si se pasa `file_id`, exige que cada bloque le pertenezca
        (evita liberar bloques ajenos por un mapeo desactualizado).
        """
        idxs = list(indices)
        self._check_indices(idxs)
        if file_id is not None:
            for i in idxs:
                if self._storage[i].file_id != file_id:
                    raise ValueError(f"El bloque {i} no pertenece a '{file_id}'")
        for i in idxs:
            self._storage[i].release()

    def resize(self, new_size: int) -> None:
        """
        Cambia la cantidad de bloques.

        Errores:
          - InvalidSizeError si new_size está fuera de 1..MAX_DISK_BLOCKS.
          - OccupiedShrinkRegionError si al encoger se perderían bloques ocupados.
        """
        self._check_size(new_size)
        old_size = self.n_blocks
        if new_size < old_size:
            occupied = self.occupied_from(new_size)
            if occupied:
                raise OccupiedShrinkRegionError(new_size, occupied)
            del self._storage[new_size:]
        elif new_size > old_size:
            self._storage.extend(Block(i) for i in range(old_size, new_size))

    # ------------------------------------------------------------------
    # Validaciones
    # ------------------------------------------------------------------
    @staticmethod
    def _check_size(n_blocks: int) -> None:
        if isinstance(n_blocks, bool) or not isinstance(n_blocks, int):
            raise InvalidSizeError("El tamaño de disco debe ser int")
        if n_blocks <= 0 or n_blocks > MAX_DISK_BLOCKS:
            raise InvalidSizeError(
                f"El tamaño de disco debe estar en 1..{MAX_DISK_BLOCKS} (recibido {n_blocks})"
            )

    def _check_index(self, i: int) -> None:
        if not isinstance(i, int):
            raise TypeError("El índice de bloque debe ser int")
        if i < 0 or i >= self.n_blocks:
            raise IndexError(f"Índice fuera de rango: {i} (0..{self.n_blocks - 1})")

    def _check_indices(self, idxs: Sequence[int]) -> None:
        for i in idxs:
            self._check_index(i)
