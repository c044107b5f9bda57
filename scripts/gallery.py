"""Render every example scene description on one page.

Each ``examples/*.json`` file is rendered at a reduced resolution and placed
in a matplotlib subplot grid, titled with its scene and lighting names.

Usage::

    python scripts/gallery.py                      # saves gallery.png
    python scripts/gallery.py --out my_file.png
    python scripts/gallery.py --width 96           # faster, lower quality

Requirements: numpy, matplotlib
"""
from __future__ import annotations

import argparse
import dataclasses
import glob
import logging
import os
import sys

# Ensure the repo root (parent of scripts/) is importable regardless of cwd
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import matplotlib.pyplot as plt

from sdfmarch import build_scene, load_description, render_image

_EXAMPLES = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "examples")


def render_gallery(paths, out_path: str, ncols: int = 3, width: int = 160,
                   workers: int = 4) -> None:
    nrows = (len(paths) + ncols - 1) // ncols
    height = width * 3 // 4
    fig, axes = plt.subplots(nrows, ncols, figsize=(ncols * 3.2, nrows * 2.6),
                             facecolor="#111111", squeeze=False)

    for ax, path in zip(axes.flat, paths):
        description = dataclasses.replace(load_description(path), width=width, height=height)
        image = render_image(build_scene(description), workers=workers)
        ax.imshow(image)
        ax.set_axis_off()
        ax.set_title(
            f"{description.sdf_name} / {description.lighting_name}",
            color="white", fontsize=8, pad=2,
        )

    for ax in axes.flat[len(paths):]:
        ax.set_visible(False)

    fig.suptitle("sdfmarch — example scenes", color="white", fontsize=12)
    plt.tight_layout(pad=0.3)
    fig.savefig(out_path, dpi=150, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    print(f"Saved: {out_path}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render all example scene descriptions to a single PNG gallery."
    )
    parser.add_argument("--out", default="gallery.png", help="Output PNG path")
    parser.add_argument("--cols", type=int, default=3, help="Number of columns (default 3)")
    parser.add_argument("--width", type=int, default=160,
                        help="Render width per scene in pixels (default 160)")
    parser.add_argument("-t", "--threads", type=int, default=4,
                        help="Number of render threads (default 4)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    paths = sorted(glob.glob(os.path.join(_EXAMPLES, "*.json")))
    if not paths:
        parser.exit(1, f"No scene descriptions found in {_EXAMPLES}\n")
    render_gallery(paths, args.out, ncols=args.cols, width=args.width, workers=args.threads)


if __name__ == "__main__":
    main()
