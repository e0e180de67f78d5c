from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.disk import Disk, INITIAL_DISK_SIZE
from ..core.errors import DuplicateNameError, NotFoundError
from ..core.file_entry import (
    DEFAULT_PERMISSIONS,
    FileRecord,
    normalize_name,
    validate_permissions,
    validate_size,
)
from ..core.free_space import FragmentationReport, FreeSpaceMap
from ..fs_strategies import DEFAULT_STRATEGY, get_allocator, validate_strategy
from .defrag import defragment


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    message: str

    def __str__(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.message}"


@dataclass(frozen=True)
class BlockChanges:
    """Bloques asignados / liberados por el último comando (vacío si no movió bloques)."""

    allocated: Tuple[int, ...] = ()
    freed: Tuple[int, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """Copia inmutable del estado confirmado, para que la UI o la CLI la dibujen."""

    disk_size: int
    strategy: str
    files: Tuple[FileRecord, ...]
    owners: Tuple[Optional[str], ...]
    selected_file_id: Optional[str]
    logs: Tuple[LogEntry, ...]
    last_changes: BlockChanges

    def bitmap(self) -> List[int]:
        return [0 if owner is None else 1 for owner in self.owners]

    def fragmentation(self) -> FragmentationReport:
        return FreeSpaceMap(self.bitmap()).report()


def _new_file_id() -> str:
    return uuid.uuid4().hex


class FileSystemSimulator:
    """
    Motor del simulador: un disco, un catálogo de archivos y la estrategia activa.

    Cada comando valida y calcula todo antes de tocar el estado, así que si lanza
    una excepción (ver core.errors) el estado anterior queda intacto. Si termina
    bien, agrega una línea al registro de actividad y notifica `on_event`.

    La estrategia activa solo afecta a las asignaciones futuras: cada archivo
    guarda la estrategia con la que fue creado o redimensionado por última vez.

    Instrumentación:
      - `on_event(event_type, **payload)`: se llama una vez por comando exitoso
        ("create", "delete", "rename", "resize", "chmod", "strategy",
        "disk_resize", "defragment") con `message` en el payload. Las estrategias
        usan el mismo callable para "allocate:done" / "allocate:failed".
    """

    def __init__(
        self,
        disk_size: int = INITIAL_DISK_SIZE,
        strategy: str = DEFAULT_STRATEGY,
        *,
        on_event: Optional[Callable[..., None]] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = _new_file_id,
    ) -> None:
        self._strategy = validate_strategy(strategy)
        self._disk = Disk(disk_size)
        self._files: List[FileRecord] = []
        self._selected_file_id: Optional[str] = None
        self._logs: List[LogEntry] = []
        self._last_changes = BlockChanges()

        self.on_event: Optional[Callable[..., None]] = on_event
        self._clock = clock
        self._id_factory = id_factory

        self._logs.append(
            LogEntry(
                self._clock(),
                f"Sistema de archivos inicializado con {disk_size} bloques. "
                f"Asignación: {strategy}.",
            )
        )

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    @property
    def disk_size(self) -> int:
        return self._disk.n_blocks

    @property
    def disk(self) -> Disk:
        """Disco vivo. Para leer; las mutaciones van por los comandos."""
        return self._disk

    @property
    def strategy(self) -> str:
        return self._strategy

    @property
    def selected_file_id(self) -> Optional[str]:
        return self._selected_file_id

    @property
    def logs(self) -> Tuple[LogEntry, ...]:
        return tuple(self._logs)

    @property
    def last_changes(self) -> BlockChanges:
        return self._last_changes

    def list_files(self) -> List[FileRecord]:
        """Copias de los archivos en orden de creación."""
        return [f.copy() for f in sorted(self._files, key=lambda f: f.created_at)]

    def get_file(self, file_id: str) -> FileRecord:
        return self._require(file_id).copy()

    def find_by_name(self, name: str) -> Optional[FileRecord]:
        """Busca por nombre exacto y, si no aparece, por el nombre normalizado."""
        for candidate in (name, normalize_name(name)):
            for f in self._files:
                if f.name == candidate:
                    return f.copy()
        return None

    def largest_file(self) -> Optional[FileRecord]:
        if not self._files:
            return None
        largest = self._files[0]
        for f in self._files[1:]:
            if f.size_blocks > largest.size_blocks:
                largest = f
        return largest.copy()

    def block_table(self) -> List[Optional[str]]:
        return self._disk.owners()

    def bitmap(self) -> List[int]:
        return self._disk.bitmap()

    def fragmentation(self) -> FragmentationReport:
        return FreeSpaceMap.from_disk(self._disk).report()

    def stats(self) -> Dict[str, int]:
        """Resumen de uso en bloques (datos + índices)."""
        used = self._disk.used_blocks_count()
        return {
            "total_blocks": self.disk_size,
            "used_blocks": used,
            "free_blocks": self.disk_size - used,
            "index_blocks": sum(f.overhead_blocks for f in self._files),
        }

    def snapshot(self) -> Snapshot:
        return Snapshot(
            disk_size=self.disk_size,
            strategy=self._strategy,
            files=tuple(f.copy() for f in self._files),
            owners=tuple(self._disk.owners()),
            selected_file_id=self._selected_file_id,
            logs=tuple(self._logs),
            last_changes=self._last_changes,
        )

    # ------------------------------------------------------------------
    # Comandos sobre archivos
    # ------------------------------------------------------------------
    def create_file(self, name: str, size_blocks: int) -> FileRecord:
        """
        Crea un archivo con la estrategia activa.

        Errores:
          - InvalidNameError / InvalidSizeError si las entradas no son válidas.
          - DuplicateNameError si el nombre normalizado ya existe.
          - InsufficientContiguousSpaceError / InsufficientSpaceError según la estrategia.
        """
        final_name = normalize_name(name)
        validate_size(size_blocks)
        self._assert_name_available(final_name)

        allocator = get_allocator(self._strategy, on_event=self.on_event)
        allocation = allocator.allocate(
            FreeSpaceMap.from_disk(self._disk), size_blocks, name=final_name
        )

        record = FileRecord(
            id=self._id_factory(),
            name=final_name,
            size_blocks=size_blocks,
            strategy=self._strategy,
            block_indices=list(allocation.data_blocks),
            index_block=allocation.index_block,
            permissions=DEFAULT_PERMISSIONS,
            created_at=self._clock(),
        )

        self._disk.assign(allocation.all_blocks(), record.id)
        self._files.append(record)
        self._selected_file_id = record.id
        self._last_changes = BlockChanges(allocated=tuple(allocation.all_blocks()))

        self._log(
            "create",
            f'Creado "{record.name}" ({record.size_blocks} bloques, '
            f"{record.permissions}) con {record.strategy}",
            file_id=record.id,
            blocks=allocation.all_blocks(),
        )
        return record.copy()

    def delete_file(self, file_id: str) -> Snapshot:
        f = self._require(file_id)
        blocks_to_free = f.all_blocks()

        self._disk.release(blocks_to_free, f.id)
        self._files = [other for other in self._files if other.id != f.id]
        if self._selected_file_id == f.id:
            self._selected_file_id = None
        self._last_changes = BlockChanges(freed=tuple(blocks_to_free))

        self._log("delete", f'Eliminado "{f.name}"', file_id=f.id, freed=blocks_to_free)
        return self.snapshot()

    def rename_file(self, file_id: str, new_name: str) -> FileRecord:
        f = self._require(file_id)
        final_name = normalize_name(new_name)
        self._assert_name_available(final_name, ignore_id=f.id)

        old_name = f.name
        f.name = final_name
        self._last_changes = BlockChanges()
        self._log("rename", f'Renombrado "{old_name}" a "{final_name}"', file_id=f.id)
        return f.copy()

    def resize_file(self, file_id: str, new_size: int) -> FileRecord:
        """
        Reasigna el archivo a `new_size` bloques con la estrategia *activa*.

        Los bloques propios del archivo cuentan como disponibles durante la
        búsqueda, así que achicar o volver a crecer no requiere borrar antes. Los
        bloques que quedan en la asignación nueva y en la vieja no se tocan.
        """
        f = self._require(file_id)
        validate_size(new_size)

        allocator = get_allocator(self._strategy, on_event=self.on_event)
        space = FreeSpaceMap.from_disk(self._disk, reclaim_owner=f.id)
        allocation = allocator.allocate(space, new_size, name=f.name)

        old_blocks = f.all_blocks()
        new_blocks = allocation.all_blocks()
        old_set, new_set = set(old_blocks), set(new_blocks)
        freed = [b for b in old_blocks if b not in new_set]
        claimed = [b for b in new_blocks if b not in old_set]

        self._disk.release(freed, f.id)
        self._disk.assign(claimed, f.id)

        f.size_blocks = new_size
        f.strategy = allocation.strategy
        f.block_indices = list(allocation.data_blocks)
        f.index_block = allocation.index_block
        self._selected_file_id = f.id
        self._last_changes = BlockChanges(allocated=tuple(claimed), freed=tuple(freed))

        self._log(
            "resize",
            f'Redimensionado "{f.name}" a {new_size} bloques con {f.strategy}',
            file_id=f.id,
            allocated=claimed,
            freed=freed,
        )
        return f.copy()

    def chmod(self, file_id: str, permissions: str) -> Snapshot:
        """Reemplaza los permisos (modo absoluto, sin máscaras)."""
        f = self._require(file_id)
        validate_permissions(permissions)

        f.permissions = permissions
        self._last_changes = BlockChanges()
        self._log(
            "chmod",
            f'Permisos de "{f.name}" cambiados a {permissions}',
            file_id=f.id,
        )
        return self.snapshot()

    def select_file(self, file_id: Optional[str]) -> Snapshot:
        if file_id is not None:
            self._require(file_id)
        self._selected_file_id = file_id
        return self.snapshot()

    # ------------------------------------------------------------------
    # Comandos sobre el disco
    # ------------------------------------------------------------------
    def set_strategy(self, strategy: str) -> Snapshot:
        validate_strategy(strategy)
        self._last_changes = BlockChanges()
        if strategy != self._strategy:
            self._strategy = strategy
            self._log("strategy", f"Estrategia de asignación cambiada a {strategy}.")
        return self.snapshot()

    def resize_disk(self, new_size: int) -> Snapshot:
        """
        Errores:
          - InvalidSizeError si new_size está fuera de rango.
          - OccupiedShrinkRegionError si se recortarían bloques ocupados.
        """
        old_size = self.disk_size
        self._disk.resize(new_size)
        self._last_changes = BlockChanges()
        self._log(
            "disk_resize",
            f"Tamaño de disco cambiado a {new_size} bloques.",
            old_size=old_size,
            new_size=new_size,
        )
        return self.snapshot()

    def defragment(self) -> Snapshot:
        old_blocks = {f.id: f.all_blocks() for f in self._files}
        new_files, new_disk = defragment(self._files, self.disk_size)
        moved = sum(1 for f in new_files if f.all_blocks() != old_blocks[f.id])

        self._files = new_files
        self._disk = new_disk
        self._last_changes = BlockChanges()

        self._log("defragment", "Desfragmentación completada.", moved_files=moved)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Auxiliares
    # ------------------------------------------------------------------
    def _require(self, file_id: str) -> FileRecord:
        for f in self._files:
            if f.id == file_id:
                return f
        raise NotFoundError(file_id)

    def _assert_name_available(self, name: str, ignore_id: Optional[str] = None) -> None:
        for f in self._files:
            if f.name == name and f.id != ignore_id:
                raise DuplicateNameError(name)

    def _log(self, event_type: str, message: str, **payload: Any) -> None:
        self._logs.append(LogEntry(self._clock(), message))
        self._emit(event_type, message=message, **payload)

    def _emit(self, event_type: str, **payload: Any) -> None:
        if self.on_event is not None:
            try:
                self.on_event(event_type, **payload)
            except TypeError:
                self.on_event(event_type)
