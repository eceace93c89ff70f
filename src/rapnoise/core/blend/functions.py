from __future__ import annotations

import numpy as np

from .base import register_blend


def _linear(a, b, t):
    return a * (1 - t) + b * t


def _cosine(a, b, t):
    # Zero slope at both ends
    f = (1 - np.cos(t * np.pi)) * 0.5
    return a * (1 - f) + b * f


linear = register_blend("linear", _linear)
cosine = register_blend("cosine", _cosine)
