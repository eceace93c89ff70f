from __future__ import annotations

import functools
import hashlib
from typing import Any, Callable, Tuple, Union

import numpy as np

from rapnoise.core.constants import WORD_SIZE
from rapnoise.core.errors import InvalidArgumentError, UnsupportedHashOutputError

from .base import BitSource, register_bit_source

# Keeps the 52 mantissa bits; the top 12 bits become sign 0 and the exponent of 1.0
_MANTISSA_MASK = np.uint64(0x000F_FFFF_FFFF_FFFF)
_ONE_BITS = np.uint64(0x3FF0_0000_0000_0000)

HashSpec = Union[str, Callable[[], Any]]


def _hash_constructor(algorithm: HashSpec) -> Tuple[Callable[[bytes], bytes], int]:
    """Return a one-shot digest function and its output width in bytes."""
    if algorithm is None:
        raise InvalidArgumentError("A hash algorithm is required.")
    if isinstance(algorithm, str):
        try:
            width = hashlib.new(algorithm).digest_size
        except ValueError as exc:
            raise InvalidArgumentError(f"Unknown hash algorithm '{algorithm}'.") from exc
        return (lambda data: hashlib.new(algorithm, data).digest()), width
    if not callable(algorithm):
        raise InvalidArgumentError("algorithm must be a hashlib name or constructor.")

    def _digest(data: bytes) -> bytes:
        h = algorithm()
        h.update(data)
        return h.digest()

    return _digest, algorithm().digest_size


def unit_doubles(chunk: bytes) -> np.ndarray:
    """
    Convert whole little-endian 64-bit words into doubles in [0, 1).

    Each word is forced into the [1, 2) binade by overwriting its sign and
    exponent, reinterpreted as float64, then shifted down by 1.0.
    """
    words = np.frombuffer(chunk, dtype="<u8").astype(np.uint64)
    bits = (words & _MANTISSA_MASK) | _ONE_BITS
    return bits.view(np.float64) - 1.0


class HashChainBitSource(BitSource):
    """
    Deterministic doubles from a chain of hash blocks.

    key = H(seed); the first block is the key itself and every later block
    is H(key + previous block). Two instances built from the same seed bytes
    and algorithm always emit the same sequence.
    """

    def __init__(self, seed: bytes = b"", algorithm: HashSpec = "sha256"):
        if seed is None:
            seed = b""
        self._digest, self.block_width = _hash_constructor(algorithm)
        # Variable-length hashes (shake) report a digest size of 0
        if self.block_width == 0 or self.block_width % WORD_SIZE != 0:
            raise UnsupportedHashOutputError(
                f"Hash output of {self.block_width} bytes is not a multiple of {WORD_SIZE}."
            )
        self._key = self._digest(bytes(seed))
        self._block = self._key
        self._offset = 0

    def _ensure_available(self) -> None:
        if self._offset >= self.block_width:
            self._block = self._digest(self._key + self._block)
            self._offset = 0

    def next_doubles(self, count: int) -> np.ndarray:
        out = np.empty(count, dtype=np.float64)
        filled = 0
        while filled < count:
            self._ensure_available()
            words = min((self.block_width - self._offset) // WORD_SIZE, count - filled)
            end = self._offset + words * WORD_SIZE
            out[filled:filled + words] = unit_doubles(self._block[self._offset:end])
            self._offset = end
            filled += words
        return out


for _name in ("sha256", "sha512", "blake2b", "md5"):
    register_bit_source(_name, functools.partial(HashChainBitSource, algorithm=_name))
