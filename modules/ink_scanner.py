"""
Band-based ink usage scanner.

A page is cut into 12 horizontal bands. A band counts as "used" when any
pixel in it is not a neutral gray (R, G and B not all equal). The count of
used bands drives the color ink surcharge.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from PIL import Image


SECTION_COUNT = 12


def band_bounds(height: int, sections: int = SECTION_COUNT) -> List[tuple[int, int]]:
    """
    Row ranges ``[start, end)`` for each band.

    Bands are ``height // sections`` rows tall (at least 1); the last band
    absorbs the remainder. On images shorter than ``sections`` rows the
    trailing bands are empty.
    """
    band_height = max(1, height // sections)
    bounds = []
    for i in range(sections):
        start = min(i * band_height, height)
        end = height if i == sections - 1 else min((i + 1) * band_height, height)
        bounds.append((start, end))
    return bounds


def scan_image(img: Image.Image, sections: int = SECTION_COUNT) -> List[bool]:
    """Per-band used flags, top to bottom."""
    if img.mode in ("1", "L", "I", "F", "LA", "I;16"):
        # Single-channel images cannot hold a non-gray pixel
        return [False] * sections

    rgb = img if img.mode == "RGB" else img.convert("RGB")
    width, height = rgb.size
    pixels = rgb.load()

    flags: List[bool] = []
    for start, end in band_bounds(height, sections):
        used = False
        for y in range(start, end):
            for x in range(width):
                r, g, b = pixels[x, y]
                if r != g or g != b:
                    used = True
                    break
            if used:
                break
        flags.append(used)
    return flags


def scan_used_sections(image_path: str | Path, sections: int = SECTION_COUNT) -> int:
    """
    Number of used bands in the image file, in ``[0, sections]``.

    The whole decoded image is held in memory; callers scan one page at a time.
    """
    with Image.open(image_path) as img:
        return sum(scan_image(img, sections))
