"""Render a scene-description JSON file to an image.

Usage::

    python scripts/render_scene.py examples/torus.json torus.png
    python scripts/render_scene.py examples/mandelbulb.json bulb.png -t 8
    python scripts/render_scene.py examples/fbm.json fbm.png -t 1   # no threads

Requirements: numpy, matplotlib
"""
from __future__ import annotations

import argparse
import logging
import os
import sys

# Ensure the repo root (parent of scripts/) is importable regardless of cwd
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sdfmarch import build_scene, load_description, render_image, save_png


def main() -> None:
    parser = argparse.ArgumentParser(description="Simple SDF raymarcher.")
    parser.add_argument("input", help="Scene description (JSON)")
    parser.add_argument("output", help="Output image path (PNG)")
    parser.add_argument("-t", "--threads", type=int, default=4,
                        help="Number of render threads (default 4, 1 disables threading)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        description = load_description(args.input)
    except (OSError, ValueError) as exc:
        parser.exit(1, f"Error: {exc}\n")

    scene = build_scene(description)
    image = render_image(scene, workers=args.threads)
    save_png(args.output, image)


if __name__ == "__main__":
    main()
