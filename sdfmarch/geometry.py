"""Composable signed-distance geometries.

A :class:`Geometry` is the "evaluate a point, get a signed distance"
capability the marcher consumes.  Primitives wrap a function from
:mod:`sdfmarch.sdf_lib`; composites capture their children in a closure and
never mutate them, so a finished geometry is safe to share between threads.
"""

from __future__ import annotations

from typing import Callable, Sequence

from . import sdf_lib as sdf
from .vector import _F, as_points

_SDFFunc = Callable[[_F], _F]


# ===========================================================================
# Base class
# ===========================================================================

class Geometry:
    """Base class for signed-distance geometries.

    A ``Geometry`` wraps a callable ``func(p) -> distances`` where *p* is
    a ``(..., 3)`` array of points and the return value is a ``(...)``
    array of signed distances (negative inside).

    Implements:
    - Boolean operations: :meth:`union`, :meth:`subtract`, :meth:`intersect`
    - Smooth blends:      :meth:`smooth_union`, :meth:`smooth_intersect`
    - Transforms:         :meth:`translate`
    """

    def __init__(self, func: _SDFFunc) -> None:
        self._func = func

    def sdf(self, p: _F) -> _F:
        """Evaluate signed distance at *p* (shape ``(..., 3)``)."""
        return self._func(as_points(p))

    def __call__(self, p: _F) -> _F:
        return self.sdf(p)

    # ------------------------------------------------------------------
    # Boolean operations
    # ------------------------------------------------------------------

    def union(self, other: Geometry) -> Geometry:
        """Return the union (min) of this shape and *other*."""
        return Union(self, other)

    def subtract(self, other: Geometry) -> Geometry:
        """Subtract *other* from this shape."""
        return Subtraction(self, other)

    def intersect(self, other: Geometry) -> Geometry:
        """Return the intersection (max) of this shape and *other*."""
        return Intersection(self, other)

    def smooth_union(self, other: Geometry, k: float) -> Geometry:
        """Union blended over a radius *k*."""
        return SmoothUnion(self, other, k=k)

    def smooth_intersect(self, other: Geometry, k: float) -> Geometry:
        """Intersection blended over a radius *k*."""
        return SmoothIntersection(self, other, k=k)

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def translate(self, tx: float, ty: float, tz: float) -> Geometry:
        """Translate by ``(tx, ty, tz)``."""
        t = as_points((tx, ty, tz))
        return Geometry(lambda p: self._func(p - t))


# ===========================================================================
# Primitive shapes
# ===========================================================================

class Sphere(Geometry):
    """Sphere of *radius* centred at *center*."""

    def __init__(self, radius: float, center: Sequence[float] = (0.0, 0.0, 0.0)) -> None:
        c = as_points(center)
        super().__init__(lambda p: sdf.sdSphere(p, c, radius))


class Torus(Geometry):
    """Torus in the XZ plane.

    Parameters
    ----------
    major_radius:
        Distance from the origin to the centre of the tube.
    minor_radius:
        Radius of the tube cross-section.
    """

    def __init__(self, major_radius: float, minor_radius: float) -> None:
        super().__init__(lambda p: sdf.sdTorus(p, major_radius, minor_radius))


class Plane(Geometry):
    """Half-space below the plane ``dot(p, normal) = offset``.

    *normal* is used as given; pass a unit vector for exact distances.
    """

    def __init__(self, normal: Sequence[float], offset: float = 0.0) -> None:
        n = as_points(normal)
        super().__init__(lambda p: sdf.sdPlane(p, n, offset))


class Mandelbulb(Geometry):
    """Mandelbulb distance estimate.

    Parameters
    ----------
    iterations:
        Maximum orbit iterations per evaluation.
    bailout:
        Orbit modulus beyond which a point is considered escaped.
    power:
        Exponent of the spherical power map.
    """

    def __init__(self, iterations: int = 100, bailout: float = 10.0, power: float = 4.0) -> None:
        super().__init__(lambda p: sdf.sdMandelbulb(p, iterations, bailout, power))


class MandelbulbIterations(Geometry):
    """Mandelbulb escape-iteration fraction.

    Shares the evaluation interface of a geometry but is a shading signal,
    not a distance; use it as a scene's auxiliary channel only.
    """

    def __init__(self, iterations: int = 100, bailout: float = 10.0, power: float = 4.0) -> None:
        super().__init__(
            lambda p: sdf.mandelbulbIterationFraction(p, iterations, bailout, power)
        )


class Gyroid(Geometry):
    """Gyroid sheet with spatial frequency *scale* and thickness *bias*."""

    def __init__(self, scale: float, bias: float) -> None:
        super().__init__(lambda p: sdf.sdGyroid(p, scale, bias))


class SphereGrid(Geometry):
    """Unit lattice of spheres with pseudo-random radii."""

    def __init__(self) -> None:
        super().__init__(sdf.sdSphereGrid)


class SphereFbm(Geometry):
    """Sphere-grid detail accumulated over four octaves onto a *base* geometry."""

    def __init__(self, base: Geometry) -> None:
        super().__init__(lambda p: sdf.sdSphereFbm(p, base.sdf(p)))


# ===========================================================================
# Boolean operation classes
# ===========================================================================

class Union(Geometry):
    """Union of two or more geometries (minimum SDF)."""

    def __init__(self, *geoms: Geometry) -> None:
        def _sdf(p: _F) -> _F:
            d = geoms[0].sdf(p)
            for g in geoms[1:]:
                d = sdf.opUnion(d, g.sdf(p))
            return d

        super().__init__(_sdf)


class Intersection(Geometry):
    """Intersection of two or more geometries (maximum SDF)."""

    def __init__(self, *geoms: Geometry) -> None:
        def _sdf(p: _F) -> _F:
            d = geoms[0].sdf(p)
            for g in geoms[1:]:
                d = sdf.opIntersection(d, g.sdf(p))
            return d

        super().__init__(_sdf)


class Subtraction(Geometry):
    """Subtract *cutter* from *base*: ``max(base, -cutter)``."""

    def __init__(self, base: Geometry, cutter: Geometry) -> None:
        super().__init__(
            lambda p: sdf.opSubtraction(cutter.sdf(p), base.sdf(p))
        )


class SmoothUnion(Geometry):
    """Polynomial smooth union of two geometries with blend radius *k*."""

    def __init__(self, a: Geometry, b: Geometry, k: float) -> None:
        super().__init__(lambda p: sdf.opSmoothUnion(a.sdf(p), b.sdf(p), k))


class SmoothIntersection(Geometry):
    """Polynomial smooth intersection of two geometries with blend radius *k*."""

    def __init__(self, a: Geometry, b: Geometry, k: float) -> None:
        super().__init__(lambda p: sdf.opSmoothIntersection(a.sdf(p), b.sdf(p), k))
