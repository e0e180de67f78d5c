from __future__ import annotations
from typing import List, Optional, Tuple

from ..core.allocator_base import Allocation, AllocatorBase
from ..core.errors import InsufficientSpaceError
from ..core.free_space import FreeSpaceMap


class IndexedAllocator(AllocatorBase):
    """
    Asignación indexada: un bloque índice más `size` bloques de datos.

    El bloque libre más bajo es el índice; los `size` libres siguientes, en
    orden ascendente, son los datos. Necesita `size + 1` libres en total.
    """

    name = "indexed"
    overhead_blocks = 1

    def allocate(
        self,
        space: FreeSpaceMap,
        size_blocks: int,
        *,
        name: Optional[str] = None,
    ) -> Allocation:
        self._assert_positive_blocks(size_blocks)

        total_blocks_needed = self.blocks_required(size_blocks)
        allocated_indices = space.first_free(total_blocks_needed)
        if len(allocated_indices) < total_blocks_needed:
            self._emit("allocate:failed", strategy=self.name, name=name, size_blocks=size_blocks)
            raise InsufficientSpaceError(
                total_blocks_needed,
                space.free_count(),
                strategy=self.name,
                index_blocks=self.overhead_blocks,
                name=name,
            )

        index_block_idx = allocated_indices.pop(0)
        data_blocks_indices = allocated_indices

        self._emit(
            "allocate:done",
            strategy=self.name,
            name=name,
            size_blocks=size_blocks,
            index_block=index_block_idx,
            data_blocks=data_blocks_indices,
        )
        return Allocation(
            strategy=self.name,
            data_blocks=tuple(data_blocks_indices),
            index_block=index_block_idx,
        )


def index_entries(block_indices: List[int]) -> List[Tuple[int, int]]:
    """Contenido lógico del bloque índice: (bloque lógico, bloque físico)."""
    return list(enumerate(block_indices))
