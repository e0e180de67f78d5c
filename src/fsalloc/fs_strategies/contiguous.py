from __future__ import annotations
from typing import Optional

from ..core.allocator_base import Allocation, AllocatorBase
from ..core.errors import InsufficientContiguousSpaceError
from ..core.free_space import FreeSpaceMap


class ContiguousAllocator(AllocatorBase):
    """
    Estrategia de **asignación contigua** (first-fit).

    El archivo ocupa un único tramo `[start, start + size)`, con `start` el más
    bajo posible. Puede fallar aunque el total de bloques libres alcance: lo que
    importa es el tramo libre más largo.
    """

    name = "contiguous"

    def allocate(
        self,
        space: FreeSpaceMap,
        size_blocks: int,
        *,
        name: Optional[str] = None,
    ) -> Allocation:
        self._assert_positive_blocks(size_blocks)

        start = space.find_first_fit(size_blocks)
        if start is None:
            self._emit("allocate:failed", strategy=self.name, name=name, size_blocks=size_blocks)
            raise InsufficientContiguousSpaceError(
                size_blocks,
                space.largest_free_run_size(),
                available=space.free_count(),
                name=name,
            )

        indices = tuple(range(start, start + size_blocks))
        self._emit(
            "allocate:done",
            strategy=self.name,
            name=name,
            size_blocks=size_blocks,
            start=start,
            physical_blocks=list(indices),
        )
        return Allocation(strategy=self.name, data_blocks=indices)
