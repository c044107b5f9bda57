"""
sdfmarch — Sphere-Tracing Renderer for Signed Distance Fields
=============================================================

Renders images of implicitly defined 3D scenes by marching rays through a
signed distance field (SDF), based on Inigo Quilez's distance function
collection.

Implemented features
--------------------
- Primitive fields: Sphere, Torus, Plane, Mandelbulb, Gyroid, SphereGrid,
  SphereFbm
- Boolean operations: Union, Intersection, Subtraction and their smooth
  variants
- Scene catalogue selected by name, camera basis from position + look-at
- Sphere tracing: :func:`sphere_trace`
- Normals: one-sided (default) and central differences
- Lighting: :func:`simple_lighting`, :func:`simple_lighting_2`
- Rendering: :func:`render_pixel`, threaded :func:`render_image`

Quick start
-----------

::

    from sdfmarch import SceneDescription, build_scene, render_image, save_png

    scene = build_scene(SceneDescription(sdf_name="torus", width=320, height=240))
    image = render_image(scene, workers=4)
    save_png("torus.png", image)

Single pixel::

    from sdfmarch import render_pixel
    r, g, b = render_pixel(scene, 160, 120)
"""

from .geometry import (
    Geometry,
    Sphere,
    Torus,
    Plane,
    Mandelbulb,
    MandelbulbIterations,
    Gyroid,
    SphereGrid,
    SphereFbm,
    Union,
    Intersection,
    Subtraction,
    SmoothUnion,
    SmoothIntersection,
)
from .lighting import LightingInfo, LightingKind, simple_lighting, simple_lighting_2
from .march import (
    MarchResult,
    sphere_trace,
    forward_difference_normal,
    central_difference_normal,
)
from .scene import (
    Scene,
    SceneDescription,
    SceneKind,
    build_scene,
    camera_basis,
    load_description,
)
from .render import primary_rays, shade, quantize, render_pixel, render_image, save_png

__version__ = "0.1.0"

__all__ = [
    # Geometry
    "Geometry",
    "Sphere",
    "Torus",
    "Plane",
    "Mandelbulb",
    "MandelbulbIterations",
    "Gyroid",
    "SphereGrid",
    "SphereFbm",

    # Boolean operations
    "Union",
    "Intersection",
    "Subtraction",
    "SmoothUnion",
    "SmoothIntersection",

    # Lighting
    "LightingInfo",
    "LightingKind",
    "simple_lighting",
    "simple_lighting_2",

    # Marching
    "MarchResult",
    "sphere_trace",
    "forward_difference_normal",
    "central_difference_normal",

    # Scenes
    "Scene",
    "SceneDescription",
    "SceneKind",
    "build_scene",
    "camera_basis",
    "load_description",

    # Rendering
    "primary_rays",
    "shade",
    "quantize",
    "render_pixel",
    "render_image",
    "save_png",
]
