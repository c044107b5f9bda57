"""Per-pixel rendering: ray generation, shading, quantisation and output.

:func:`render_pixel` is the single-pixel entry point.  :func:`render_image`
evaluates the whole frame by splitting it into disjoint row bands and
shading each band on a fixed-size thread pool; every band writes only its
own slice of a pre-allocated buffer, so the result does not depend on the
order in which bands finish.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

import matplotlib.image as mpimg
import numpy as np
import numpy.typing as npt

from .lighting import LightingInfo, ambient_term
from .march import sphere_trace
from .scene import Scene
from .vector import DTYPE, _F, clamp, normalize

logger = logging.getLogger(__name__)

# Horizontal and vertical extent of the image plane at unit distance.
FIELD_X = 0.8
FIELD_Y = 0.6

_Image = npt.NDArray[np.uint8]


# ===========================================================================
# Rays
# ===========================================================================

def primary_rays(scene: Scene, y0: int = 0, y1: Optional[int] = None) -> _F:
    """Unit ray directions for pixel rows ``y0:y1``, shape ``(rows, width, 3)``."""
    if y1 is None:
        y1 = scene.height
    xs = np.arange(scene.width, dtype=DTYPE)
    ys = np.arange(y0, y1, dtype=DTYPE)
    x_off = (xs / scene.width - 0.5) * FIELD_X
    y_off = (0.5 - ys / scene.height) * FIELD_Y
    rays = (
        scene.direction
        + scene.screen_y * y_off[:, None, None]
        + scene.screen_x * x_off[None, :, None]
    )
    return normalize(rays)


# ===========================================================================
# Shading
# ===========================================================================

def shade(scene: Scene, directions: _F) -> _F:
    """March *directions* through *scene* and light the result.

    Returns unclamped RGB of shape ``(..., 3)``.  Rays that miss are shaded
    like any other, which is what gives the background its colour.
    """
    sdf = scene.geometry.sdf
    result = sphere_trace(
        sdf, scene.origin, directions,
        scene.max_steps, scene.max_distance, scene.epsilon,
    )

    if scene.auxiliary is None:
        auxiliary = np.ones(result.traveled.shape, dtype=DTYPE)
    else:
        auxiliary = scene.auxiliary.sdf(result.position)

    normal = scene.normal_estimator(sdf, result.position)
    info = LightingInfo(
        position=result.position,
        normal=normal,
        ray_distance=np.minimum(result.traveled / scene.max_distance, 1.0),
        object_distance=result.radius,
        ambient=ambient_term(normal),
        auxiliary=auxiliary,
        step_fraction=(result.steps / scene.max_steps).astype(DTYPE),
    )
    return scene.lighting(info)


def quantize(rgb: _F) -> _Image:
    """Convert colours to 8 bit: ``round(255 * clamp01(c))``; NaN becomes 0."""
    rgb = clamp(np.nan_to_num(rgb, nan=0.0), 0.0, 1.0)
    return np.round(255.0 * rgb).astype(np.uint8)


def render_pixel(scene: Scene, x: int, y: int) -> Tuple[int, int, int]:
    """Render pixel ``(x, y)`` of *scene* and return its 8-bit RGB triple."""
    if not (0 <= x < scene.width and 0 <= y < scene.height):
        raise IndexError(
            f"pixel ({x}, {y}) outside {scene.width}x{scene.height} image"
        )
    direction = primary_rays(scene, y, y + 1)[0, x]
    r, g, b = quantize(shade(scene, direction))
    return int(r), int(g), int(b)


# ===========================================================================
# Whole image
# ===========================================================================

def render_image(
    scene: Scene,
    workers: Optional[int] = None,
    band_height: int = 16,
) -> _Image:
    """Render the full frame into a ``(height, width, 3)`` uint8 array.

    Parameters
    ----------
    scene:
        The scene to render.
    workers:
        Thread-pool size; ``None`` uses the CPU count, ``<= 1`` renders in
        the calling thread.
    band_height:
        Number of pixel rows shaded per task.
    """
    if workers is None:
        workers = os.cpu_count() or 1

    image = np.zeros((scene.height, scene.width, 3), dtype=np.uint8)
    bands = [
        (y0, min(y0 + band_height, scene.height))
        for y0 in range(0, scene.height, band_height)
    ]

    def _render_band(band: Tuple[int, int]) -> None:
        y0, y1 = band
        image[y0:y1] = quantize(shade(scene, primary_rays(scene, y0, y1)))

    start = time.perf_counter()
    if workers <= 1:
        for band in bands:
            _render_band(band)
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # list() re-raises the first worker exception here.
            list(pool.map(_render_band, bands))
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    logger.info(
        "Rendered %dx%d in %.0f ms with %d worker(s)",
        scene.width, scene.height, elapsed_ms, max(workers, 1),
    )
    return image


def save_png(path: str, image: _Image) -> None:
    """Save *image* to *path* (creates parent directories if needed)."""
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    mpimg.imsave(path, image)
    logger.info("Wrote %s", path)
