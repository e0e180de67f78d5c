from __future__ import annotations
from typing import List, Sequence, Set, Tuple

from ..core.disk import Disk
from ..core.file_entry import FileRecord


def defragment(files: Sequence[FileRecord], disk_size: int) -> Tuple[List[FileRecord], Disk]:
    """
    Compacta los archivos al inicio del disco, en orden de creación.

    No modifica `files`: devuelve copias y un disco nuevo. Cada archivo movido
    queda en un tramo propio (índice primero si es indexado) sin importar su
    estrategia, que se conserva como etiqueta. Si un archivo no entra a partir
    del cursor, se corta la pasada y ese archivo y los siguientes quedan en sus
    bloques originales (nunca se liberan).

    Orden del catálogo resultante: movidos (en orden de creación) y luego los no
    movidos en su orden previo.
    """
    # sorted() es estable: a igual fecha manda el orden del catálogo
    ordered = sorted(files, key=lambda f: f.created_at)

    relocated: List[FileRecord] = []
    moved_ids: Set[str] = set()
    cursor = 0

    for f in ordered:
        is_indexed = f.strategy == "indexed"
        needed = f.size_blocks + (1 if is_indexed else 0)
        # Con un catálogo consistente siempre entra; el corte cubre entradas mal formadas
        if cursor + needed > disk_size:
            break

        new_file = f.copy()
        if is_indexed:
            new_file.index_block = cursor
            cursor += 1
        new_file.block_indices = list(range(cursor, cursor + f.size_blocks))
        cursor += f.size_blocks

        relocated.append(new_file)
        moved_ids.add(f.id)

    remaining = [f.copy() for f in files if f.id not in moved_ids]

    new_disk = Disk(disk_size)
    for f in relocated + remaining:
        new_disk.assign(f.all_blocks(), f.id)

    return relocated + remaining, new_disk
