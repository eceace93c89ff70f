"""Random-access, multi-octave Perlin-style noise over an unbounded N-dimensional lattice."""

from rapnoise.core.blend.base import Blend, get_blend, list_blends, register_blend
from rapnoise.core.blend.functions import cosine, linear
from rapnoise.core.bits.base import BitSource, get_bit_source, list_bit_sources, register_bit_source
from rapnoise.core.bits.hashchain import HashChainBitSource
from rapnoise.core.errors import (
    DimensionMismatchError,
    InvalidArgumentError,
    NoiseError,
    UnsupportedHashOutputError,
    ValueOutOfRangeError,
)
from rapnoise.orchestrator.generator import NoiseConfig, NoiseGenerator

__version__ = "0.1.0"

__all__ = [
    "BitSource",
    "Blend",
    "DimensionMismatchError",
    "HashChainBitSource",
    "InvalidArgumentError",
    "NoiseConfig",
    "NoiseError",
    "NoiseGenerator",
    "UnsupportedHashOutputError",
    "ValueOutOfRangeError",
    "cosine",
    "get_bit_source",
    "get_blend",
    "linear",
    "list_bit_sources",
    "list_blends",
    "register_bit_source",
    "register_blend",
]
