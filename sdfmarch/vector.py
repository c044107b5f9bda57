"""3-D vector helpers shared by every sdfmarch module.

Vectors are plain ``float32`` NumPy arrays whose last axis has length 3.
A single vector is a ``(3,)`` array, a batch of points or rays is
``(..., 3)``.  Add/sub/mul/div with another vector or a scalar is ordinary
NumPy broadcasting, so this module only provides what NumPy does not spell
directly:

* **Constructors**: :func:`vec3`, :func:`as_points`
* **Math helpers**: :func:`length`, :func:`dot`, :func:`cross`,
  :func:`normalize`, :func:`clamp`, :func:`fract`

None of the helpers mutate their arguments.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np
import numpy.typing as npt

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------
_F = npt.NDArray[np.float32]
_VecLike = Union[_F, Sequence[float]]

DTYPE = np.float32

__all__ = [
    "_F", "DTYPE",
    "vec3", "as_points",
    "length", "dot", "cross", "normalize", "clamp", "fract",
]


# ===========================================================================
# Constructors
# ===========================================================================

def vec3(x, y, z) -> _F:
    """Stack *x*, *y*, *z* into a ``(..., 3)`` float32 array."""
    x, y, z = np.broadcast_arrays(
        np.asarray(x, dtype=DTYPE), np.asarray(y, dtype=DTYPE), np.asarray(z, dtype=DTYPE)
    )
    return np.stack([x, y, z], axis=-1)


def as_points(p: _VecLike) -> _F:
    """Coerce *p* (tuple, list or array) to a float32 ``(..., 3)`` array."""
    return np.asarray(p, dtype=DTYPE)


# ===========================================================================
# Math helpers
# ===========================================================================

def length(v: _F) -> _F:
    """Euclidean length along the last axis."""
    return np.sqrt(np.sum(v * v, axis=-1))


def dot(a: _F, b: _F) -> _F:
    """Dot product along the last axis."""
    return np.sum(a * b, axis=-1)


def cross(a: _F, b: _F) -> _F:
    """Cross product ``a x b`` along the last axis."""
    return np.cross(a, b).astype(DTYPE, copy=False)


def normalize(v: _F) -> _F:
    """Scale *v* to unit length.

    A zero-length input produces non-finite components; callers must not
    pass degenerate vectors.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        return v / length(v)[..., None]


def clamp(x: _F, lo: float | _F, hi: float | _F) -> _F:
    """Clamp *x* element-wise to ``[lo, hi]``."""
    return np.minimum(np.maximum(x, lo), hi)


def fract(x: _F) -> _F:
    """Fractional part with truncation semantics: ``x - trunc(x)``.

    The result carries the sign of *x*, so ``fract(-1.25) == -0.25``.
    """
    return x - np.trunc(x)
