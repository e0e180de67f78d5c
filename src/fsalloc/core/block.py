from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass
class Block:
    """
    Bloque físico del disco simulado.

    No guarda contenido: solo su posición y el id del archivo dueño
    (`None` = libre).
    """

    index: int
    file_id: Optional[str] = None

    @property
    def is_free(self) -> bool:
        return self.file_id is None

    def assign(self, file_id: str) -> None:
        if not isinstance(file_id, str) or not file_id:
            raise TypeError("file_id debe ser un str no vacío")
        self.file_id = file_id

    def release(self) -> None:
        self.file_id = None

    def __repr__(self) -> str:
        owner = "libre" if self.file_id is None else self.file_id[:8]
        return f"Block(index={self.index}, owner={owner})"
