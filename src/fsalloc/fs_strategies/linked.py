from typing import List, Optional, Sequence, Tuple

from ..core.allocator_base import Allocation, AllocatorBase
from ..core.errors import InsufficientSpaceError
from ..core.free_space import FreeSpaceMap


END_OF_FILE_MARKER = -1


class LinkedAllocator(AllocatorBase):
    """
    Asignación enlazada (Linked Allocation).

    Lógica:
    - Toma los primeros `size` bloques libres en orden ascendente, sin exigir
      que sean vecinos.
    - La lista resultante es la cadena: el elemento i apunta al i+1 y el último
      apunta a 'END_OF_FILE_MARKER'.
    - No hay bloque de cabecera: solo falla si faltan bloques libres en total.
    """

    name = "linked"

    def allocate(
        self,
        space: FreeSpaceMap,
        size_blocks: int,
        *,
        name: Optional[str] = None,
    ) -> Allocation:
        self._assert_positive_blocks(size_blocks)

        chosen = space.first_free(size_blocks)
        if len(chosen) < size_blocks:
            self._emit("allocate:failed", strategy=self.name, name=name, size_blocks=size_blocks)
            raise InsufficientSpaceError(
                size_blocks,
                space.free_count(),
                strategy=self.name,
                name=name,
            )

        self._emit(
            "allocate:done",
            strategy=self.name,
            name=name,
            size_blocks=size_blocks,
            allocated=chosen,
        )
        return Allocation(strategy=self.name, data_blocks=tuple(chosen))


def link_table(block_indices: Sequence[int]) -> List[Tuple[int, int]]:
    """
    Punteros de la cadena como pares (bloque, siguiente).
    El último bloque apunta a END_OF_FILE_MARKER.
    """
    pairs: List[Tuple[int, int]] = []
    for i, block in enumerate(block_indices):
        next_block = block_indices[i + 1] if i + 1 < len(block_indices) else END_OF_FILE_MARKER
        pairs.append((block, next_block))
    return pairs
