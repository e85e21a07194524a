"""
Shared fixtures for the PisoPrint test suite.

Page images are generated with Pillow and PDFs with pypdf, so no test needs
poppler installed: the rasterization engine is replaced by FakeRasterEngine.
"""

import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pytest
from PIL import Image
from pypdf import PdfReader, PdfWriter

from core.exceptions import RasterizationError
from core.raster_engine import RasterEngine
from models.session import CachedPage
from services.cache_store import ImageCacheStore


WHITE = (255, 255, 255)


def write_png(
    path: Path,
    size: Tuple[int, int] = (24, 48),
    fill=WHITE,
    mode: str = "RGB",
    dots: Iterable[Tuple[int, int, Tuple[int, int, int]]] = (),
) -> Path:
    """Write a solid image, optionally with single colored pixels (x, y, rgb)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new(mode, size, fill)
    for x, y, color in dots:
        img.putpixel((x, y), color)
    img.save(path, format="PNG")
    return path


def write_pdf(path: Path, page_sizes: Iterable[Tuple[float, float]]) -> Path:
    """Write a PDF with one blank page per (width, height)."""
    writer = PdfWriter()
    for width, height in page_sizes:
        writer.add_blank_page(width=width, height=height)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as handle:
        writer.write(handle)
    return path


class FakeRasterEngine(RasterEngine):
    """
    Stand-in for poppler.

    Writes one white page image per PDF page, named the way pdf2image leaves
    them (``{basename}0001-{NN}.png``), and lets the real adapter rename them.
    """

    def __init__(self, fail_for: Optional[str] = None, color_band: Optional[int] = None):
        super().__init__(poppler_path="/opt/fake-poppler")
        self.fail_for = fail_for
        self.color_band = color_band
        self.calls: List[str] = []
        self.thread_names: List[str] = []
        self._lock = threading.Lock()

    def initialize(self) -> str:
        self._executable = "/usr/bin/fake-pdftoppm"
        return self._executable

    def rasterize(self, pdf_path: Path, out_dir: Path, basename: str) -> List[Path]:
        pdf_path = Path(pdf_path)
        with self._lock:
            self.calls.append(pdf_path.name)
            self.thread_names.append(threading.current_thread().name)

        if self.fail_for and pdf_path.name.endswith(f"_{self.fail_for}.pdf"):
            raise RasterizationError(
                "Rasterization failed (exit code 1)",
                basename=basename,
                returncode=1,
                stderr="Syntax Error: broken xref",
            )

        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        reader = PdfReader(str(pdf_path))
        produced = []
        for index, page in enumerate(reader.pages, start=1):
            width = int(float(page.mediabox.width)) // 12
            height = int(float(page.mediabox.height)) // 12
            dots = []
            if self.color_band is not None:
                band_height = height // 12
                dots.append((0, self.color_band * band_height, (255, 0, 0)))
            produced.append(
                write_png(out_dir / f"{basename}0001-{index:02d}.png", (width, height), dots=dots)
            )

        return self._collect_outputs(produced, out_dir, basename)


# Fixtures

@pytest.fixture
def cache_store(tmp_path):
    """Empty cache with both partitions created."""
    store = ImageCacheStore(tmp_path / "cache")
    store.ensure_partitions()
    return store


@pytest.fixture
def cached_pages(cache_store):
    """
    Factory that writes rendered pages straight into a partition.

    Usage: cached_pages("letter", "123-doc", {1: [], 2: [(0, 5, (0, 0, 255))]})
    """

    def _make(paper: str, basename: str, pages: Dict[int, list]) -> List[Path]:
        folder = cache_store.partition_dir(paper)
        return [
            write_png(folder / CachedPage.canonical_name(basename, index), dots=dots)
            for index, dots in pages.items()
        ]

    return _make


@pytest.fixture
def fake_engine():
    engine = FakeRasterEngine()
    engine.initialize()
    return engine
