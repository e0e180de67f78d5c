from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, Any

from ..core.disk import MAX_DISK_BLOCKS
from ..fs_strategies import STRATEGIES


# Escenarios guionados: cada op referencia archivos por nombre (los ids se
# generan en tiempo de ejecución).
DEFAULTS: Dict[str, Dict[str, Any]] = {
    "contiguous-gap": {
        "description": "Contigua: hay 6 bloques libres pero el tramo más largo es de 4",
        "disk_size": 10,
        "strategy": "contiguous",
        "ops": [
            {"op": "create", "name": "a", "size_blocks": 4},
            {"op": "create", "name": "b", "size_blocks": 4},
            {"op": "delete", "name": "a"},
            {"op": "create", "name": "c", "size_blocks": 5},
        ],
    },
    "linked-overflow": {
        "description": "Enlazada: falla solo cuando faltan bloques libres en total",
        "disk_size": 10,
        "strategy": "linked",
        "ops": [
            {"op": "create", "name": "a", "size_blocks": 3},
            {"op": "create", "name": "b", "size_blocks": 10},
        ],
    },
    "indexed-basic": {
        "description": "Indexada: un archivo de 3 bloques consume 4 (uno es el índice)",
        "disk_size": 10,
        "strategy": "indexed",
        "ops": [
            {"op": "create", "name": "a", "size_blocks": 3},
        ],
    },
    "shrink-occupied": {
        "description": "Reducir el disco falla si la zona recortada tiene bloques ocupados",
        "disk_size": 5,
        "strategy": "contiguous",
        "ops": [
            {"op": "create", "name": "a", "size_blocks": 5},
            {"op": "disk_resize", "disk_size": 3},
            {"op": "delete", "name": "a"},
            {"op": "disk_resize", "disk_size": 3},
        ],
    },
    "defrag-mixed": {
        "description": "Mezcla de estrategias, huecos y desfragmentación antes de una asignación contigua grande",
        "disk_size": 30,
        "strategy": "contiguous",
        "ops": [
            {"op": "create", "name": "a", "size_blocks": 4},
            {"op": "strategy", "strategy": "linked"},
            {"op": "create", "name": "b", "size_blocks": 6},
            {"op": "delete", "name": "a"},
            {"op": "strategy", "strategy": "indexed"},
            {"op": "create", "name": "c", "size_blocks": 3},
            {"op": "create", "name": "d", "size_blocks": 5},
            {"op": "delete", "name": "b"},
            {"op": "strategy", "strategy": "contiguous"},
            {"op": "create", "name": "e", "size_blocks": 15},
            {"op": "defragment"},
            {"op": "create", "name": "e", "size_blocks": 15},
            {"op": "chmod", "name": "e", "permissions": "644"},
            {"op": "rename", "name": "c", "new_name": "c.log"},
        ],
    },
}


_REQUIRED_KEYS = {
    "description": str,
    "disk_size": int,
    "strategy": str,
    "ops": list,
}

_OP_REQUIRED_KEYS: Dict[str, Dict[str, type]] = {
    "create": {"name": str, "size_blocks": int},
    "delete": {"name": str},
    "rename": {"name": str, "new_name": str},
    "resize": {"name": str, "size_blocks": int},
    "chmod": {"name": str, "permissions": str},
    "strategy": {"strategy": str},
    "disk_resize": {"disk_size": int},
    "defragment": {},
}


def load_from_json(path: str | Path) -> Dict[str, Dict[str, Any]]:
    """
    Carga escenarios desde un JSON opcional. El archivo debe mapear:
      { "<scenario_name>": {<config>}, ... }
    Si el archivo no existe, retorna {}.
    """
    p = Path(path)
    if not p.exists():
        return {}
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("El JSON de escenarios debe ser un objeto {nombre: config}.")

    return data


def _validate_op(name: str, i: int, op: Any) -> None:
    if not isinstance(op, dict):
        raise ValueError(f"[{name}] op #{i} debe ser un objeto")
    kind = op.get("op")
    if kind not in _OP_REQUIRED_KEYS:
        raise ValueError(
            f"[{name}] op #{i}: tipo desconocido {kind!r} "
            f"(válidos: {', '.join(_OP_REQUIRED_KEYS)})"
        )
    for k, typ in _OP_REQUIRED_KEYS[kind].items():
        if k not in op:
            raise ValueError(f"[{name}] op #{i} ({kind}): falta clave '{k}'")
        if not isinstance(op[k], typ) or isinstance(op[k], bool):
            raise ValueError(
                f"[{name}] op #{i} ({kind}): tipo inválido para '{k}', esperado {typ.__name__}"
            )


def _validate_schema(name: str, cfg: Dict[str, Any]) -> None:
    """
    Valida tipos y rangos básicos. Lanza ValueError con mensajes claros.
    """
    for k, typ in _REQUIRED_KEYS.items():
        if k not in cfg:
            raise ValueError(f"[{name}] Falta clave requerida: '{k}'")
        if not isinstance(cfg[k], typ):
            raise ValueError(f"[{name}] Tipo inválido para '{k}': esperado {typ}, recibido {type(cfg[k])}")

    if cfg["disk_size"] <= 0 or cfg["disk_size"] > MAX_DISK_BLOCKS:
        raise ValueError(f"[{name}] 'disk_size' debe estar en 1..{MAX_DISK_BLOCKS}")
    if cfg["strategy"] not in STRATEGIES:
        raise ValueError(f"[{name}] 'strategy' inválida: {cfg['strategy']!r}")

    for i, op in enumerate(cfg["ops"]):
        _validate_op(name, i, op)


def _normalize_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Retorna una copia del config con la lista de ops copiada (el runner no debe
    alterar DEFAULTS).
    """
    norm = dict(cfg)
    norm["ops"] = [dict(op) for op in cfg["ops"]]
    return norm


def available_scenarios(extra_path: str | Path | None = None) -> Dict[str, str]:
    """
    Devuelve {nombre: descripción} de escenarios disponibles,
    combinando DEFAULTS con los definidos en extra_path (si existe).
    """
    combined: Dict[str, Dict[str, Any]] = dict(DEFAULTS)
    if extra_path:
        combined.update(load_from_json(extra_path))
    return {k: v.get("description", "") for k, v in combined.items()}


def get_config(
    scenario: str | None,
    scenarios_path: str | Path | None = None,
    overrides: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """
    Resuelve la configuración final a usar por el runner:
      1) Parte del escenario elegido desde DEFAULTS + JSON externo (si hay).
      2) Aplica overrides (si vienen).
      3) Valida y normaliza.
    Lanza KeyError si no existe el escenario indicado.
    Lanza ValueError si hay inconsistencias de esquema o valores.
    """
    combined: Dict[str, Dict[str, Any]] = dict(DEFAULTS)
    if scenarios_path:
        combined.update(load_from_json(scenarios_path))

    cfg: Dict[str, Any] = {}
    if scenario:
        if scenario not in combined:
            raise KeyError(f"Escenario '{scenario}' no existe")
        cfg.update(combined[scenario])

    if overrides:
        cfg.update(overrides)

    if not cfg:
        raise ValueError("No se proporcionó escenario ni overrides con configuración.")

    _validate_schema(scenario or "<overrides>", cfg)
    return _normalize_config(cfg)
