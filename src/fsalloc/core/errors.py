from __future__ import annotations
from typing import List, Optional


class SimulationError(Exception):
    """
    Base de todos los rechazos del simulador.

    Cada subclase hereda además de la excepción estándar que se usaría para la
    misma condición (FileExistsError, MemoryError, ...), así que quien capture
    `MemoryError` sigue atrapando la falta de espacio.
    """


# ----------------------------------------------------------------------
# Catálogo
# ----------------------------------------------------------------------
class DuplicateNameError(SimulationError, FileExistsError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"El archivo '{name}' ya existe")


class NotFoundError(SimulationError, FileNotFoundError):
    def __init__(self, file_id: str) -> None:
        self.file_id = file_id
        super().__init__(f"El archivo '{file_id}' no existe")


# ----------------------------------------------------------------------
# Asignación
# ----------------------------------------------------------------------
class AllocationError(SimulationError, MemoryError):
    """Falta de espacio para una asignación (creación o redimensionado)."""

    def __init__(
        self,
        message: str,
        *,
        strategy: str,
        requested: int,
        available: int,
        name: Optional[str] = None,
    ) -> None:
        self.strategy = strategy
        self.requested = requested
        self.available = available
        self.name = name
        super().__init__(message)


class InsufficientContiguousSpaceError(AllocationError):
    def __init__(
        self,
        requested: int,
        largest_run: int,
        *,
        available: int,
        name: Optional[str] = None,
    ) -> None:
        self.largest_run = largest_run
        target = f" para '{name}'" if name else ""
        super().__init__(
            f"No hay espacio contiguo suficiente{target}: se piden {requested} bloques "
            f"seguidos y el tramo libre más largo es de {largest_run} "
            f"({available} libres en total)",
            strategy="contiguous",
            requested=requested,
            available=available,
            name=name,
        )


class InsufficientSpaceError(AllocationError):
    def __init__(
        self,
        requested: int,
        available: int,
        *,
        strategy: str,
        index_blocks: int = 0,
        name: Optional[str] = None,
    ) -> None:
        self.index_blocks = index_blocks
        target = f" para '{name}'" if name else ""
        detail = f" ({index_blocks} para el índice)" if index_blocks else ""
        super().__init__(
            f"No hay bloques libres suficientes{target}: se piden {requested} "
            f"bloques{detail}, hay {available}",
            strategy=strategy,
            requested=requested,
            available=available,
            name=name,
        )


# ----------------------------------------------------------------------
# Validación de entradas
# ----------------------------------------------------------------------
class InvalidPermissionsError(SimulationError, ValueError):
    def __init__(self, permissions: str) -> None:
        self.permissions = permissions
        super().__init__(
            f"Permisos inválidos '{permissions}': deben ser 3 dígitos octales (ej. 755)"
        )


class OccupiedShrinkRegionError(SimulationError, ValueError):
    def __init__(self, new_size: int, occupied: List[int]) -> None:
        self.new_size = new_size
        self.occupied = list(occupied)
        super().__init__(
            f"No se puede reducir el disco a {new_size} bloques: "
            f"{len(self.occupied)} bloque(s) ocupados en la zona a eliminar "
            f"(primero: {self.occupied[0]})"
        )


class InvalidSizeError(SimulationError, ValueError):
    pass


class InvalidNameError(SimulationError, ValueError):
    pass


class InvalidStrategyError(SimulationError, ValueError):
    def __init__(self, strategy: str, valid: List[str]) -> None:
        self.strategy = strategy
        super().__init__(
            f"Estrategia inválida: {strategy!r} (válidas: {', '.join(valid)})"
        )
