from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from .free_space import FreeSpaceMap


@dataclass(frozen=True)
class Allocation:
    """Resultado de una asignación: bloques de datos en orden + bloque índice opcional."""

    strategy: str
    data_blocks: Tuple[int, ...]
    index_block: Optional[int] = None

    @property
    def total_blocks(self) -> int:
        return len(self.data_blocks) + (0 if self.index_block is None else 1)

    def all_blocks(self) -> List[int]:
        if self.index_block is None:
            return list(self.data_blocks)
        return [self.index_block] + list(self.data_blocks)


class AllocatorBase(ABC):
    """
    Contrato de las políticas de asignación (contigua, enlazada, indexada).

    Unidades:
      - `size_blocks` está expresado en **bloques de datos**. Los bloques extra de
        la política (el índice en indexada) se suman aparte en `overhead_blocks`.

    Pureza:
      - `allocate` recibe un `FreeSpaceMap` y no modifica nada. Devuelve la
        asignación o lanza el error de espacio de la política; confirmar la
        asignación en el disco es trabajo de quien llama.

    Instrumentación:
      - `on_event`: Callable opcional, se invoca con on_event(event_type, **payload).
        Eventos: "allocate:done", "allocate:failed".
    """

    name: str = ""
    overhead_blocks: int = 0

    def __init__(
        self,
        *,
        on_event: Optional[Callable[..., None]] = None,
    ) -> None:
        self.on_event: Optional[Callable[..., None]] = on_event

    def blocks_required(self, size_blocks: int) -> int:
        return size_blocks + self.overhead_blocks

    @abstractmethod
    def allocate(
        self,
        space: FreeSpaceMap,
        size_blocks: int,
        *,
        name: Optional[str] = None,
    ) -> Allocation:
        """
        Elige los bloques para un archivo de `size_blocks` bloques de datos.

        Precondiciones:
          - 'size_blocks' > 0.

        Postcondiciones:
          - Todos los bloques devueltos estaban libres en `space`.
          - len(data_blocks) == size_blocks.
          - index_block presente solo si la política lo usa.

        Errores:
          - InsufficientContiguousSpaceError / InsufficientSpaceError según la política.
          - ValueError si 'size_blocks' es inválido.
        """
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Auxiliares
    # ------------------------------------------------------------------
    def _assert_positive_blocks(self, n_blocks: int) -> None:
        if n_blocks <= 0:
            raise ValueError("n_blocks debe ser > 0")

    def _emit(self, event_type: str, **payload: Any) -> None:
        """
        Notifica un evento al que esté escuchando (runner, UI, tests).

        Ejemplo:
            self._emit("allocate:done", strategy=self.name, name=name, blocks=idxs)
        """
        if self.on_event is not None:
            try:
                self.on_event(event_type, **payload)
            except TypeError:
                self.on_event(event_type)
