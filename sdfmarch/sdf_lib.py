"""SDF math primitives for the sdfmarch package.

Every function accepts and returns ``numpy.ndarray`` objects and supports
broadcasting over arbitrary leading batch dimensions.  A "point array" *p*
has shape ``(..., 3)``; scalar SDF results have shape ``(...,)``.  All
functions are pure, so they can be evaluated concurrently from any number of
worker threads.

Exact distance fields: :func:`sdSphere`, :func:`sdTorus`, :func:`sdPlane`.

Approximate fields (bounds, not exact distances away from the surface):
:func:`sdMandelbulb`, :func:`sdGyroid`, :func:`sdSphereGrid`,
:func:`sdSphereFbm`.  The constants used by the approximate fields are
tuned for the marcher's step sizes and are kept as-is for render parity.

Formulas are adapted from Inigo Quilez's articles:
https://iquilezles.org/articles/distfunctions/ and
https://iquilezles.org/articles/fbmsdf/
"""

from __future__ import annotations

import numpy as np

from .vector import DTYPE, _F, as_points, dot, fract, length, vec3

__all__ = [
    "sdSphere", "sdTorus", "sdPlane",
    "sdMandelbulb", "mandelbulbIterationFraction",
    "sdGyroid",
    "gridHash", "sdSphereGrid", "sdSphereFbm",
    "opUnion", "opIntersection", "opSubtraction",
    "opSmoothUnion", "opSmoothIntersection", "opSmoothSubtraction",
]


# ===========================================================================
# Exact primitives
# ===========================================================================

def sdSphere(p: _F, center: _F, radius: float) -> _F:
    """Sphere of *radius* centred at *center*."""
    return length(p - center) - radius


def sdTorus(p: _F, major_radius: float, minor_radius: float) -> _F:
    """Torus centred at the origin with its ring in the XZ plane."""
    q = length(p[..., [0, 2]]) - major_radius
    return np.sqrt(q * q + p[..., 1] * p[..., 1]) - minor_radius


def sdPlane(p: _F, normal: _F, offset: float) -> _F:
    """Half-space ``dot(p, normal) - offset``.

    *normal* must be unit length for the result to be a true distance; it is
    not normalised here.
    """
    return dot(p, normal) - offset


# ===========================================================================
# Mandelbulb
# ===========================================================================

def _mandelbulb_orbit(p: _F, iterations: int, bailout: float, power: float):
    """Iterate ``z -> z**power + p`` in spherical form.

    Returns ``(r, dr, steps)``: the orbit modulus at bailout (or after the
    last iteration), the running derivative magnitude, and the iteration
    index at which the orbit escaped (``iterations`` if it never did).
    Escaped points are frozen while the rest of the batch keeps iterating.
    """
    p = as_points(p)
    shape = p.shape[:-1]
    z = p
    r = np.zeros(shape, dtype=DTYPE)
    dr = np.ones(shape, dtype=DTYPE)
    steps = np.full(shape, iterations, dtype=DTYPE)
    active = np.ones(shape, dtype=bool)

    for i in range(1, iterations):
        r = np.where(active, length(z), r)
        escaped = active & (r > bailout)
        steps = np.where(escaped, i, steps)
        active = active & ~escaped
        if not active.any():
            break

        theta = np.arccos(z[..., 2] / r) * power
        phi = np.arctan2(z[..., 1], z[..., 0]) * power
        dr = np.where(active, r ** (power - 1.0) * power * dr + 1.0, dr)

        zr = (r ** power)[..., None]
        z_next = zr * vec3(
            np.sin(theta) * np.cos(phi),
            np.sin(phi) * np.sin(theta),
            np.cos(theta),
        ) + p
        z = np.where(active[..., None], z_next, z)

    return r, dr, steps


def sdMandelbulb(p: _F, iterations: int = 100, bailout: float = 10.0, power: float = 4.0) -> _F:
    """Escape-time distance estimate ``0.5 * ln(r) * r / dr`` of the Mandelbulb.

    Points at the origin (``r == 0``) or whose derivative overflows give
    non-finite or zero estimates; no guard is applied.
    """
    with np.errstate(all="ignore"):
        r, dr, _ = _mandelbulb_orbit(p, iterations, bailout, power)
        return 0.5 * np.log(r) * r / dr


def mandelbulbIterationFraction(
    p: _F, iterations: int = 100, bailout: float = 10.0, power: float = 4.0
) -> _F:
    """Fraction ``escape_step / iterations`` of the Mandelbulb orbit at *p*.

    Not a distance field: it is a shading signal in ``(0, 1]``, ``1.0`` for
    points that never escape.
    """
    with np.errstate(all="ignore"):
        _, _, steps = _mandelbulb_orbit(p, iterations, bailout, power)
    return steps / DTYPE(iterations)


# ===========================================================================
# Gyroid
# ===========================================================================

def sdGyroid(p: _F, scale: float, bias: float) -> _F:
    """Gyroid sheet ``|dot(sin(q), cos(q.zxy) - bias)| / scale`` with ``q = p * scale``.

    The raw value is remapped by ``(v - 0.2) * 0.8``, which thickens the sheet
    and shortens the marcher's steps near it.  The result is an approximation,
    not an exact distance.
    """
    q = p * scale
    s = np.sin(q)
    c = np.cos(q[..., [2, 0, 1]]) - bias
    return (np.abs(dot(s, c)) / scale - 0.2) * 0.8


# ===========================================================================
# Random sphere grid and fBm
# ===========================================================================

_CORNERS = np.array(
    [[i, j, k] for i in (0.0, 1.0) for j in (0.0, 1.0) for k in (0.0, 1.0)],
    dtype=DTYPE,
)

# Rotation/shear applied to the domain between fBm octaves.
_FBM_MATRIX = np.array(
    [
        [0.00, 1.60, 1.20],
        [-1.60, 0.72, -0.96],
        [-1.20, -0.96, -1.28],
    ],
    dtype=DTYPE,
)


def gridHash(grid: _F) -> _F:
    """Hash integer grid coordinates ``(..., 3)`` to a float in ``(-0.5, 0.5)``.

    Ad hoc and not collision resistant; only meant to give each cell a stable
    pseudo-random value.  Evaluated in float32 throughout.
    """
    h = grid[..., 0] * 37476.1393 + grid[..., 1] * 668.265263 + grid[..., 2]
    t = (fract(h) * 1274.64) * (np.floor(h) / 6177.1)
    return fract(t) * 0.5


def sdSphereGrid(p: _F) -> _F:
    """Infinite lattice of spheres with a pseudo-random radius per lattice point.

    *p* is split into its cell ``floor(p)`` and the offset inside the cell;
    each of the cell's 8 corners carries a sphere of radius
    ``0.5 * gridHash(corner)`` and the closest one wins.
    """
    p = as_points(p)
    grid = np.floor(p)
    frac = p - grid

    d = None
    for corner in _CORNERS:
        radius = 0.5 * gridHash(grid + corner)
        dc = length(frac - corner) - radius
        d = dc if d is None else np.minimum(d, dc)
    return d


def sdSphereFbm(p: _F, d: _F) -> _F:
    """Four-octave fBm-style accumulation of :func:`sdSphereGrid` onto *d*.

    Each octave is clipped against the running surface with a smooth
    intersection (so detail only grows near it), merged with a smooth union,
    then the domain is rotated/sheared by a fixed matrix and multiplied
    component-wise by its previous value, and the amplitude is halved.
    """
    p = as_points(p)
    scale = 1.0
    # The last domain step can overflow far from the origin; it is never sampled.
    with np.errstate(over="ignore", invalid="ignore"):
        for _ in range(4):
            n = scale * sdSphereGrid(p)
            n = opSmoothIntersection(n, d - 0.1 * scale, 0.3 * scale)
            d = opSmoothUnion(n, d, 0.3 * scale)

            p = (p @ _FBM_MATRIX.T) * p
            scale = 0.5 * scale
    return d


# ===========================================================================
# Boolean operators
# ===========================================================================

def opUnion(d1: _F, d2: _F) -> _F:
    """Union of two SDFs: ``min(d1, d2)``."""
    return np.minimum(d1, d2)


def opIntersection(d1: _F, d2: _F) -> _F:
    """Intersection of two SDFs: ``max(d1, d2)``."""
    return np.maximum(d1, d2)


def opSubtraction(d1: _F, d2: _F) -> _F:
    """Subtract *d1* from *d2*: ``max(-d1, d2)``."""
    return np.maximum(-d1, d2)


def opSmoothUnion(d1: _F, d2: _F, k: float) -> _F:
    """Polynomial smooth minimum with blend radius *k*.

    ``min(d1, d2) - h*h*k/4`` with ``h = max(k - |d1 - d2|, 0) / k``.
    ``k <= 0`` falls back to the hard minimum.
    """
    if k <= 0.0:
        return np.minimum(d1, d2)
    h = np.maximum(k - np.abs(d1 - d2), 0.0) / k
    return np.minimum(d1, d2) - h * h * k * 0.25


def opSmoothIntersection(d1: _F, d2: _F, k: float) -> _F:
    """Polynomial smooth maximum: ``-opSmoothUnion(-d1, -d2, k)``."""
    return -opSmoothUnion(-d1, -d2, k)


def opSmoothSubtraction(d1: _F, d2: _F, k: float) -> _F:
    """Smoothly subtract *d1* from *d2*."""
    return opSmoothIntersection(-d1, d2, k)

