from typing import Callable, Dict, List, Optional, Type

from ..core.allocator_base import AllocatorBase
from ..core.errors import InvalidStrategyError
from .contiguous import ContiguousAllocator
from .indexed import IndexedAllocator
from .linked import LinkedAllocator

STRATEGIES: Dict[str, Type[AllocatorBase]] = {
    "contiguous": ContiguousAllocator,
    "linked": LinkedAllocator,
    "indexed": IndexedAllocator,
}

DEFAULT_STRATEGY = "contiguous"


def strategy_names() -> List[str]:
    return list(STRATEGIES.keys())


def validate_strategy(strategy: str) -> str:
    if strategy not in STRATEGIES:
        raise InvalidStrategyError(str(strategy), strategy_names())
    return strategy


def get_allocator(
    strategy: str,
    *,
    on_event: Optional[Callable[..., None]] = None,
) -> AllocatorBase:
    return STRATEGIES[validate_strategy(strategy)](on_event=on_event)
