from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from rapnoise.core import constants
from rapnoise.core.bits.base import list_bit_sources
from rapnoise.core.bits import hashchain  # noqa: F401 (registers bit sources)
from rapnoise.core.blend.base import list_blends
from rapnoise.core.blend import functions  # noqa: F401 (registers blends)
from rapnoise.orchestrator.generator import NoiseConfig
from rapnoise.utils.logging import get_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Raised when a generator profile is invalid."""


def _require(mapping: Dict[str, Any], key: str, expected_type: Tuple[type, ...]):
    if key not in mapping:
        raise ConfigError(f"Missing required key '{key}'")
    val = mapping[key]
    if not isinstance(val, expected_type):
        raise ConfigError(f"Key '{key}' must be of type {expected_type}, got {type(val)}")
    return val


def _optional(mapping: Dict[str, Any], key: str, expected_type: Tuple[type, ...], default):
    if key not in mapping:
        return default
    return _require(mapping, key, expected_type)


def config_from_mapping(data: Dict[str, Any]) -> NoiseConfig:
    if not isinstance(data, dict):
        raise ConfigError("Top-level YAML must be a mapping.")
    gen = _require(data, "generator", (dict,))

    seed = _require(gen, "seed", (int, str, bytes))
    if isinstance(seed, str):
        seed = seed.encode(constants.ENCODING)

    size = _require(gen, "size", (list, tuple))
    if not size or not all(isinstance(s, int) for s in size):
        raise ConfigError("generator.size must be a non-empty list of integers")

    blend = str(_optional(gen, "blend", (str,), constants.DEFAULT_BLEND))
    if blend not in list_blends():
        raise ConfigError(f"Unknown blend '{blend}'. Available: {list_blends()}")
    bit_source = str(_optional(gen, "bit_source", (str,), constants.DEFAULT_BIT_SOURCE))
    if bit_source not in list_bit_sources():
        raise ConfigError(f"Unknown bit_source '{bit_source}'. Available: {list_bit_sources()}")

    cache_depth = _optional(gen, "cache_depth", (int,), None)

    return NoiseConfig(
        seed=seed,
        persistence=float(_require(gen, "persistence", (int, float))),
        octaves=int(_require(gen, "octaves", (int,))),
        size=tuple(size),
        smooth=bool(_optional(gen, "smooth", (bool,), constants.DEFAULT_SMOOTH)),
        blend=blend,
        bit_source=bit_source,
        cache_depth=cache_depth,
    )


def parse_config(path: Path) -> NoiseConfig:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ConfigError(f"Failed to read YAML: {exc}") from exc
    return config_from_mapping(data)


def config_to_mapping(config: NoiseConfig) -> Dict[str, Any]:
    """Inverse of ``config_from_mapping`` for configs that use registered blends."""
    gen: Dict[str, Any] = {
        "seed": config.seed,
        "persistence": config.persistence,
        "octaves": config.octaves,
        "size": list(config.size),
        "smooth": config.smooth,
        "blend": config.blend if isinstance(config.blend, str) else getattr(config.blend, "name", "custom"),
        "bit_source": config.bit_source,
    }
    if config.cache_depth is not None:
        gen["cache_depth"] = config.cache_depth
    return {"generator": gen}


def write_config(path: Path, config: NoiseConfig) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_mapping(config), f, sort_keys=False)
    logger.info("Wrote generator profile path=%s", path)
    return path
