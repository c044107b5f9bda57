"""Shading functions that turn a march result into a colour.

A lighting function takes a :class:`LightingInfo` describing one or more
marched rays and returns an ``(..., 3)`` array of RGB values in roughly
``[0, 1]``.  Values are not clamped here; :func:`sdfmarch.render.quantize`
clamps before converting to 8 bit.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from .vector import _F

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class LightingInfo:
    """Per-ray inputs to a lighting function.

    All fields are arrays over the same batch shape ``(...)``; *position* and
    *normal* carry a trailing axis of length 3.

    Attributes
    ----------
    position:
        Final march position.
    normal:
        Unit surface normal estimated at *position*.
    ray_distance:
        Distance travelled divided by the scene's ``max_distance``, clamped to 1.
    object_distance:
        SDF value at *position*.
    ambient:
        Scalar ambient term, see :func:`ambient_term`.
    auxiliary:
        Auxiliary channel at *position*, ``1.0`` when the scene has none.
    step_fraction:
        Steps taken divided by the scene's ``max_steps``.
    """

    position: _F
    normal: _F
    ray_distance: _F
    object_distance: _F
    ambient: _F
    auxiliary: _F
    step_fraction: _F


_LightingFunc = Callable[[LightingInfo], _F]


def simple_lighting(info: LightingInfo) -> _F:
    """Depth in red, march cost in green, auxiliary channel in blue."""
    r = 1.0 - np.minimum(info.ray_distance, 1.0)
    return np.stack([r, info.step_fraction, info.auxiliary], axis=-1)


def simple_lighting_2(info: LightingInfo) -> _F:
    """Like :func:`simple_lighting`, with an exponential falloff in blue.

    ``b = (1 - exp(-2 / -object_distance)) * ambient``.  For rays that stop
    just outside a surface the exponential overflows and ``b`` goes to
    ``-inf``, which clamps to black.
    """
    r = 1.0 - np.minimum(info.ray_distance, 1.0)
    with np.errstate(all="ignore"):
        b = (1.0 - np.exp(-2.0 / -info.object_distance)) * info.ambient
    return np.stack([r, info.step_fraction, b], axis=-1)


class LightingKind(enum.Enum):
    """Closed set of built-in lighting functions."""

    SIMPLE = "simple"
    FALLOFF = "falloff"

    @classmethod
    def from_name(cls, name: str) -> LightingKind:
        """Map a description name to a kind; unknown names give :attr:`SIMPLE`."""
        try:
            return _LIGHTING_NAMES[name]
        except KeyError:
            logger.debug("Unknown lighting %r, using %s", name, cls.SIMPLE.value)
            return cls.SIMPLE

    @property
    def function(self) -> _LightingFunc:
        return _LIGHTING_FUNCTIONS[self]


_LIGHTING_NAMES: Dict[str, LightingKind] = {
    "default": LightingKind.SIMPLE,
    "lighting1": LightingKind.SIMPLE,
    "simple": LightingKind.SIMPLE,
    "lighting2": LightingKind.FALLOFF,
    "falloff": LightingKind.FALLOFF,
}

_LIGHTING_FUNCTIONS: Dict[LightingKind, _LightingFunc] = {
    LightingKind.SIMPLE: simple_lighting,
    LightingKind.FALLOFF: simple_lighting_2,
}


def ambient_term(normal: _F) -> _F:
    """Ambient scalar ``|nx + ny + nz| / 3`` derived from a surface normal."""
    return np.abs(np.sum(normal, axis=-1)) / 3.0
