from __future__ import annotations

from typing import Any, Callable, Dict, List, Union

from rapnoise.core.errors import InvalidArgumentError

BlendFunc = Callable[[Any, Any, Any], Any]


class Blend:
    """
    Named two-value interpolation primitive.

    ``blend(a, b, t)`` must return ``a`` at t=0 and ``b`` at t=1 and stay
    between them for t in [0, 1]. Inputs may be floats or numpy arrays.
    """

    def __init__(self, name: str, func: BlendFunc):
        self.name = name
        self.func = func

    def __call__(self, a, b, t):
        return self.func(a, b, t)

    def __repr__(self) -> str:
        return f"Blend({self.name!r})"


BLEND_REGISTRY: Dict[str, Blend] = {}


def register_blend(name: str, func: BlendFunc) -> Blend:
    blend = Blend(name=name, func=func)
    BLEND_REGISTRY[name] = blend
    return blend


def get_blend(name: str) -> Blend:
    if name not in BLEND_REGISTRY:
        raise InvalidArgumentError(f"Unknown blend '{name}'. Available: {list_blends()}")
    return BLEND_REGISTRY[name]


def list_blends() -> List[str]:
    return sorted(BLEND_REGISTRY.keys())


def resolve_blend(blend: Union[str, BlendFunc, None]) -> Blend:
    """Accept a registered name, a ``Blend`` or any plain callable."""
    if blend is None:
        raise InvalidArgumentError("A blend function is required.")
    if isinstance(blend, Blend):
        return blend
    if isinstance(blend, str):
        return get_blend(blend)
    if not callable(blend):
        raise InvalidArgumentError(f"blend must be callable or a registered name, got {type(blend)}")
    return Blend(name=getattr(blend, "__name__", "custom"), func=blend)
