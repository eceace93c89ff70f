from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Dict, List

import numpy as np

from rapnoise.core.errors import InvalidArgumentError


class BitSource(ABC):
    """Forward-only stream of uniform doubles in [0, 1)."""

    @abstractmethod
    def next_doubles(self, count: int) -> np.ndarray:
        """Draw the next ``count`` values as a float64 array."""
        ...

    def next_double(self) -> float:
        return float(self.next_doubles(1)[0])


BitSourceFactory = Callable[[bytes], BitSource]

BIT_SOURCE_REGISTRY: Dict[str, BitSourceFactory] = {}


def register_bit_source(name: str, factory: BitSourceFactory) -> None:
    BIT_SOURCE_REGISTRY[name] = factory


def get_bit_source(name: str) -> BitSourceFactory:
    if name not in BIT_SOURCE_REGISTRY:
        raise InvalidArgumentError(f"Unknown bit source '{name}'. Available: {list_bit_sources()}")
    return BIT_SOURCE_REGISTRY[name]


def list_bit_sources() -> List[str]:
    return sorted(BIT_SOURCE_REGISTRY.keys())
