from __future__ import annotations


class NoiseError(Exception):
    """Base class for every error raised by the noise engine."""


class InvalidArgumentError(NoiseError, TypeError):
    """A required argument is missing or is not usable (e.g. a non-callable blend)."""


class ValueOutOfRangeError(NoiseError, ValueError):
    """A numeric argument lies outside its permitted range."""


class DimensionMismatchError(NoiseError, ValueError):
    """A buffer, location or coordinate disagrees with the generator's dimensionality."""


class UnsupportedHashOutputError(NoiseError, ValueError):
    """The hash digest cannot be split into whole float64 words."""
