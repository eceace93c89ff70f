"""Project-wide defaults for noise generators."""

DEFAULT_SEED = 0
DEFAULT_PERSISTENCE = 0.5
DEFAULT_OCTAVES = 6
DEFAULT_SIZE = (4, 4)
DEFAULT_SMOOTH = False
DEFAULT_BLEND = "cosine"
DEFAULT_BIT_SOURCE = "sha256"

# Cache trim bound is CACHE_DEPTH_FACTOR << dimensions
CACHE_DEPTH_FACTOR = 4

WORD_SIZE = 8  # bytes per float64
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

ENCODING = "utf-8"
