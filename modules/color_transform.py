"""In-place grayscale conversion of cached page images."""

from __future__ import annotations

import os
from pathlib import Path

from PIL import Image

from logging_config import get_logger
from models.session import ColorMode


logger = get_logger(__name__)


def apply_color_mode(image_path: str | Path, color_mode: str) -> bool:
    """
    Make the cached page match the requested color mode.

    Only ``"bw"`` does anything: the file is converted to single-channel
    luminance and replaced via a temp file + rename, so a crash never leaves
    a half-written page. The conversion is one-way; the color rendering is
    gone until the document is uploaded again.

    Returns:
        True if the file was rewritten
    """
    if color_mode != ColorMode.BW.value:
        return False

    path = Path(image_path)
    with Image.open(path) as img:
        if img.mode == "L":
            return False
        gray = img.convert("L")

    tmp_path = path.with_name(path.name + ".tmp.png")
    try:
        gray.save(tmp_path, format="PNG")
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)

    logger.debug(f"Converted {path.name} to grayscale")
    return True
