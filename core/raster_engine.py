"""
Rasterization engine adapter (poppler through ``pdf2image``).

Turns a normalized PDF into one PNG per page named ``{basename}_{index}.png``
(1-based, no zero padding). pdf2image lets poppler pick its own file names
(a counter and zero-padded page number after the prefix), so the paths it
returns are renamed afterwards, in page order.

FAIL FAST BEHAVIOR:
    - initialize() raises EngineNotFoundError if pdfinfo or pdftoppm is missing
    - NO fallback renderer - the kiosk will not start without poppler

THREAD SAFETY:
    - rasterize() holds no state; concurrent calls for different basenames
      are safe because they write disjoint file names
    - Two concurrent calls for the SAME basename are not supported

Usage:
    engine = RasterEngine(poppler_path=None, dpi=72)
    engine.initialize()

    pages = engine.rasterize(Path("uploads/x_letter.pdf"), Path("staging/letter"), "x")
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from pdf2image import convert_from_path
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)

from models.session import CachedPage
from .exceptions import EngineNotFoundError, RasterizationError


DEFAULT_DPI = 72

# pdf2image shells out to both of these
POPPLER_BINARIES = ("pdfinfo", "pdftoppm")


class RasterEngine:
    """
    Wraps ``pdf2image.convert_from_path``.

    Attributes:
        poppler_path: Directory holding the poppler binaries (None = PATH)
        dpi: Output resolution
        timeout: Seconds before poppler is killed (None = wait forever)
        is_initialized: True once the binaries have been located
    """

    def __init__(
        self,
        poppler_path: Optional[str] = None,
        dpi: int = DEFAULT_DPI,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.poppler_path = poppler_path or None
        self.dpi = dpi
        self.timeout = timeout
        self._logger = logger or logging.getLogger("piso_print.core.raster_engine")
        self._executable: Optional[str] = None

    @property
    def is_initialized(self) -> bool:
        return self._executable is not None

    @property
    def executable(self) -> str:
        if self._executable is None:
            raise RuntimeError("Raster engine not initialized - call initialize() first")
        return self._executable

    def initialize(self) -> str:
        """
        Locate the poppler binaries pdf2image needs.

        Returns:
            Resolved pdftoppm path

        Raises:
            EngineNotFoundError: If a binary is not on PATH / in poppler_path
        """
        resolved = None
        for binary in POPPLER_BINARIES:
            resolved = shutil.which(binary, path=self.poppler_path)
            if resolved is None:
                self._logger.critical(f"Rasterization engine not found: {binary}")
                raise EngineNotFoundError(binary)

        self._executable = resolved
        self._logger.info(f"Rasterization engine: {resolved} @ {self.dpi} DPI")
        return resolved

    def rasterize(self, pdf_path: Path, out_dir: Path, basename: str) -> List[Path]:
        """
        Render every page of ``pdf_path`` into ``out_dir``.

        Returns:
            Canonical page image paths, ascending by page index

        Raises:
            EngineNotFoundError: If poppler disappeared after initialize()
            RasterizationError: On unreadable PDF, timeout, spawn failure or
                when no page image was produced
        """
        pdf_path = Path(pdf_path).resolve()
        out_dir = Path(out_dir).resolve()
        out_dir.mkdir(parents=True, exist_ok=True)

        self._logger.debug(f"Rasterizing {pdf_path.name} into {out_dir} @ {self.dpi} DPI")

        try:
            produced = convert_from_path(
                str(pdf_path),
                dpi=self.dpi,
                fmt="png",
                output_folder=str(out_dir),
                output_file=basename,
                paths_only=True,
                thread_count=1,
                timeout=self.timeout,
                poppler_path=self.poppler_path,
            )
        except PDFInfoNotInstalledError as exc:
            self._logger.critical(f"Rasterization engine not found: {exc}")
            raise EngineNotFoundError("pdfinfo") from exc
        except PDFPopplerTimeoutError as exc:
            raise RasterizationError(
                f"Rasterization timed out after {self.timeout}s",
                basename=basename,
            ) from exc
        except (PDFPageCountError, PDFSyntaxError) as exc:
            stderr = str(exc).strip()
            self._logger.error(f"poppler rejected {pdf_path.name}: {stderr}")
            raise RasterizationError(
                "Rasterization failed (unreadable PDF)",
                basename=basename,
                stderr=stderr,
            ) from exc
        except OSError as exc:
            raise RasterizationError(
                f"Could not start rasterization engine: {exc}",
                basename=basename,
            ) from exc

        pages = self._collect_outputs(produced, out_dir, basename)
        if not pages:
            raise RasterizationError(
                "Rasterization produced no page images",
                basename=basename,
            )

        self._logger.info(f"Rasterized {len(pages)} pages of {pdf_path.name}")
        return pages

    @staticmethod
    def _collect_outputs(produced: Sequence, out_dir: Path, basename: str) -> List[Path]:
        """Rename engine outputs, in page order, to ``{basename}_{n}.png``."""
        pages = []
        for index, source in enumerate(produced, start=1):
            target = Path(out_dir) / CachedPage.canonical_name(basename, index)
            source = Path(source)
            if source != target:
                os.replace(source, target)
            pages.append(target)
        return pages
