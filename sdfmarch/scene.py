"""Scene catalogue, camera set-up and scene construction.

A :class:`SceneDescription` is the plain configuration record read from a
JSON file; :func:`build_scene` turns it into an immutable :class:`Scene`
holding everything a render needs: the composite geometry, optional
auxiliary channel, lighting function, camera basis, resolution and march
parameters.  A built scene is read-only and shared by all render workers.

Unknown scene or lighting names are not errors: they select the default
sphere-on-floor scene and the simple lighting.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import numpy as np

from . import geometry as geo
from .lighting import LightingKind, _LightingFunc
from .march import forward_difference_normal
from .vector import _F, as_points, cross, normalize, vec3

logger = logging.getLogger(__name__)

MAX_STEPS = 100
MAX_DISTANCE = 255.0
EPSILON = 0.001

_BASIS_TOLERANCE = 1e-4

_Vec3Tuple = Tuple[float, float, float]
_NormalFunc = Callable[[Callable[[_F], _F], _F], _F]


# ===========================================================================
# Scene catalogue
# ===========================================================================

_UP = (0.0, 1.0, 0.0)


def _floor() -> geo.Geometry:
    return geo.Plane(_UP, 0.0)


def _ball() -> geo.Geometry:
    return geo.Sphere(2.0, center=(0.0, 0.0, 3.0))


def example_scene() -> geo.Geometry:
    """Sphere of radius 2 resting on the ``y = 0`` floor."""
    return geo.Union(_ball(), _floor())


def torus_scene() -> geo.Geometry:
    """Torus floating above the floor, next to the example sphere."""
    ring = geo.Torus(1.5, 0.4).translate(0.0, 2.5, 0.0)
    return geo.Union(ring, _floor(), _ball())


def mandelbulb_scene() -> geo.Geometry:
    """Power-4 Mandelbulb, 100 iterations, bailout 10."""
    return geo.Mandelbulb(iterations=100, bailout=10.0, power=4.0)


def gyroid_scene() -> geo.Geometry:
    """Gyroid lattice clipped to the half-space behind a tilted plane."""
    return geo.Intersection(
        geo.Gyroid(scale=5.0, bias=1.5),
        geo.Plane((0.5, 0.5, -0.5), -4.0),
    )


def sphere_grid_scene() -> geo.Geometry:
    """Random sphere lattice cut off above the floor."""
    return geo.Intersection(geo.SphereGrid(), _floor())


def fbm_scene() -> geo.Geometry:
    """Floor roughened by sphere-grid fBm.

    The fBm field never rises above its base, so no clipping plane is needed.
    """
    return geo.SphereFbm(_floor())


class SceneKind(enum.Enum):
    """Closed set of catalogue scenes."""

    EXAMPLE = "example"
    TORUS = "torus"
    MANDELBULB = "mandelbulb"
    GYROID = "gyroid"
    SPHERE_GRID = "sphere_grid"
    FBM = "fbm"

    @classmethod
    def from_name(cls, name: str) -> SceneKind:
        """Map a description name to a kind; unknown names give :attr:`EXAMPLE`."""
        try:
            return _SCENE_NAMES[name]
        except KeyError:
            logger.debug("Unknown scene %r, using %s", name, cls.EXAMPLE.value)
            return cls.EXAMPLE

    def geometry(self) -> geo.Geometry:
        """Build this scene's composite geometry."""
        return _SCENE_BUILDERS[self]()


_SCENE_NAMES: Dict[str, SceneKind] = {kind.value: kind for kind in SceneKind}
_SCENE_NAMES.update({
    "default": SceneKind.EXAMPLE,
    "mandlebulb": SceneKind.MANDELBULB,
})

_SCENE_BUILDERS: Dict[SceneKind, Callable[[], geo.Geometry]] = {
    SceneKind.EXAMPLE: example_scene,
    SceneKind.TORUS: torus_scene,
    SceneKind.MANDELBULB: mandelbulb_scene,
    SceneKind.GYROID: gyroid_scene,
    SceneKind.SPHERE_GRID: sphere_grid_scene,
    SceneKind.FBM: fbm_scene,
}


# ===========================================================================
# Configuration record
# ===========================================================================

@dataclass(frozen=True)
class SceneDescription:
    """Render configuration as read from a scene-description file."""

    sdf_name: str = "default"
    width: int = 640
    height: int = 480
    camera_pos: _Vec3Tuple = (0.5, 0.5, -2.0)
    look_at: _Vec3Tuple = (0.0, 0.0, 0.0)
    lighting_name: str = "default"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SceneDescription:
        """Build a description from *data*, using defaults for absent fields.

        Besides the field names, the short keys ``sdf``/``scene`` and
        ``lighting`` are accepted.  Other keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _DESCRIPTION_ALIASES.get(key, key)
            if name not in known:
                logger.debug("Ignoring scene description key %r", key)
                continue
            if name == key:
                kwargs[name] = value
            else:
                kwargs.setdefault(name, value)

        for name in ("camera_pos", "look_at"):
            if name in kwargs:
                kwargs[name] = tuple(float(c) for c in kwargs[name])
        for name in ("width", "height"):
            if name in kwargs:
                kwargs[name] = int(kwargs[name])
        return cls(**kwargs)


_DESCRIPTION_ALIASES = {
    "sdf": "sdf_name",
    "scene": "sdf_name",
    "lighting": "lighting_name",
}


def load_description(path: Union[str, Path]) -> SceneDescription:
    """Read a JSON scene-description file.

    Raises
    ------
    OSError
        If the file cannot be read.
    json.JSONDecodeError
        If the file is not valid JSON.
    ValueError
        If the top-level JSON value is not an object.
    """
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Scene description {path} must be a JSON object")
    return SceneDescription.from_dict(data)


# ===========================================================================
# Camera
# ===========================================================================

def camera_basis(camera_pos, look_at) -> Tuple[_F, _F, _F]:
    """Return ``(direction, right, up)`` for a camera at *camera_pos* facing *look_at*.

    The world axis crossed against is chosen by whether the view direction is
    closer to vertical than to the X axis, which keeps the first cross
    product away from a degenerate (parallel) pair.
    """
    direction = normalize(as_points(look_at) - as_points(camera_pos))
    if abs(direction[1]) > abs(direction[0]):
        up = normalize(cross(direction, vec3(-1.0, 0.0, 0.0)))
        right = normalize(cross(direction, up))
    else:
        right = normalize(cross(direction, vec3(0.0, -1.0, 0.0)))
        up = normalize(cross(direction, right))
    return direction, right, up


# ===========================================================================
# Scene
# ===========================================================================

@dataclass(frozen=True, eq=False)
class Scene:
    """Immutable render set-up shared by every pixel evaluation.

    Parameters
    ----------
    geometry:
        Composite signed distance field that is marched.
    lighting:
        Function mapping a :class:`~sdfmarch.lighting.LightingInfo` to RGB.
    origin:
        Camera position, shape ``(3,)``.
    direction, screen_x, screen_y:
        View direction and the screen's right/up vectors; must be orthonormal
        (checked to ``1e-4``).
    width, height:
        Output resolution in pixels.
    auxiliary:
        Optional field evaluated only at the final march position and passed
        to the lighting function; ``None`` makes the channel ``1.0``.
    normal_estimator:
        Gradient estimator used at the final march position.
    """

    geometry: geo.Geometry
    lighting: _LightingFunc
    origin: _F
    direction: _F
    screen_x: _F
    screen_y: _F
    width: int
    height: int
    auxiliary: Optional[geo.Geometry] = None
    normal_estimator: _NormalFunc = field(default=forward_difference_normal)
    max_steps: int = MAX_STEPS
    max_distance: float = MAX_DISTANCE
    epsilon: float = EPSILON

    def __post_init__(self) -> None:
        if self.max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {self.max_steps}")
        if self.max_distance <= 0.0:
            raise ValueError(f"max_distance must be positive, got {self.max_distance}")
        if self.epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"resolution must be positive, got {self.width}x{self.height}")
        for name in ("origin", "direction", "screen_x", "screen_y"):
            arr = np.array(getattr(self, name), dtype=np.float32)
            arr.flags.writeable = False
            object.__setattr__(self, name, arr)

        basis = np.stack([self.direction, self.screen_x, self.screen_y])
        if not np.allclose(basis @ basis.T, np.eye(3), atol=_BASIS_TOLERANCE):
            raise ValueError("direction, screen_x and screen_y must be orthonormal")


def build_scene(description: SceneDescription) -> Scene:
    """Construct a :class:`Scene` from *description*.

    Every catalogue scene carries the Mandelbulb iteration fraction as its
    auxiliary channel.
    """
    kind = SceneKind.from_name(description.sdf_name)
    lighting = LightingKind.from_name(description.lighting_name)
    direction, screen_x, screen_y = camera_basis(description.camera_pos, description.look_at)
    logger.debug(
        "Building scene %s (%dx%d) with %s lighting",
        kind.value, description.width, description.height, lighting.value,
    )
    return Scene(
        geometry=kind.geometry(),
        lighting=lighting.function,
        origin=as_points(description.camera_pos),
        direction=direction,
        screen_x=screen_x,
        screen_y=screen_y,
        width=description.width,
        height=description.height,
        auxiliary=geo.MandelbulbIterations(iterations=100, bailout=10.0, power=4.0),
    )
