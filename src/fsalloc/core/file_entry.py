from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .errors import InvalidNameError, InvalidPermissionsError, InvalidSizeError

DEFAULT_PERMISSIONS = "666"
DEFAULT_EXTENSION = ".txt"
MAX_FILE_BLOCKS = 1000

_PERMISSIONS_RE = re.compile(r"[0-7]{3}")


@dataclass
class FileRecord:
    """
    Entrada del catálogo de archivos.

    `block_indices` es una lista ordenada (en enlazada es la cadena misma) y
    `index_block` existe solo si `strategy == "indexed"`.
    """

    id: str
    name: str
    size_blocks: int
    strategy: str
    block_indices: List[int]
    index_block: Optional[int] = None
    permissions: str = DEFAULT_PERMISSIONS
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def overhead_blocks(self) -> int:
        return 0 if self.index_block is None else 1

    @property
    def total_blocks(self) -> int:
        return self.size_blocks + self.overhead_blocks

    def all_blocks(self) -> List[int]:
        """Bloques ocupados por el archivo, índice primero si lo hay."""
        if self.index_block is None:
            return list(self.block_indices)
        return [self.index_block] + list(self.block_indices)

    def copy(self) -> "FileRecord":
        return dataclasses.replace(self, block_indices=list(self.block_indices))


def normalize_name(name: str) -> str:
    """Sin punto en el nombre se asume texto plano: 'notas' -> 'notas.txt'."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError("El nombre de archivo es obligatorio")
    return name if "." in name else f"{name}{DEFAULT_EXTENSION}"


def validate_size(size_blocks: int) -> int:
    if isinstance(size_blocks, bool) or not isinstance(size_blocks, int):
        raise InvalidSizeError("El tamaño del archivo debe ser un entero")
    if size_blocks < 1 or size_blocks > MAX_FILE_BLOCKS:
        raise InvalidSizeError(
            f"El tamaño del archivo debe estar en 1..{MAX_FILE_BLOCKS} (recibido {size_blocks})"
        )
    return size_blocks


def validate_permissions(permissions: str) -> str:
    if not isinstance(permissions, str) or not _PERMISSIONS_RE.fullmatch(permissions):
        raise InvalidPermissionsError(str(permissions))
    return permissions
