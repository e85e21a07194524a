"""
Upload conversion and cost quoting.

This service sequences the whole pipeline for one upload:

    clear caches -> analyze -> normalize (letter ‖ legal)
                 -> rasterize (letter ‖ legal) -> publish both -> drop source

Both fan-out pairs run on a two-worker thread pool and are joined before the
next step. Rasterized pages are written to a staging directory under the
cache root and moved into the partitions only once BOTH paper sizes have
succeeded, so a failed upload never exposes half a conversion.

Thread Model:
    Request thread
    ├── Convert-letter / Convert-legal   (normalize)
    └── Convert-letter / Convert-legal   (rasterize)

There is no cancellation and no timeout here; a hung engine blocks the
request unless RASTER_TIMEOUT is configured.

Usage:
    service = ConversionService(cache_store, raster_engine, upload_dir)
    session = service.convert_upload(Path("uploads/1733-report.pdf"), "1733-report")
    quote = service.calculate_cost("letter", session.basename, "color", "1,2", 1)
    service.cleanup(session.basename)
"""

from __future__ import annotations

import shutil
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from werkzeug.utils import secure_filename

from core.exceptions import CacheMissError, ConversionError, InvalidInputError, PisoPrintError
from core.raster_engine import RasterEngine
from logging_config import get_logger, get_upload_logger, set_thread_name
from models.quote import CostQuote
from models.session import PageSet, PaperSize, UploadSession
from modules.estimator import CostEstimator
from modules.page_selection import PageSelection, select_pages
from modules.pdf_normalizer import PDFAnalyzer, normalize_for_paper
from services.cache_store import (
    ImageCacheStore,
    normalized_pdf_path,
    sanitize_basename,
    validate_basename,
)


# Module logger
logger = get_logger(__name__)

STAGING_DIRNAME = ".staging"


def make_basename(filename: str, now: Optional[float] = None) -> str:
    """
    Unique, filesystem-safe basename for an upload.

    Format: ``{milliseconds}-{sanitized stem}``, e.g. ``1733221530123-My_Report``.
    """
    millis = int((time.time() if now is None else now) * 1000)
    stem = sanitize_basename(Path(secure_filename(filename or "")).stem)
    return f"{millis}-{stem or 'document'}"


class ConversionService:
    """
    Orchestrates upload conversion and cost requests.

    Attributes:
        cache_store: Rendered-page cache (letter/legal partitions)
        raster_engine: Initialized pdf2image adapter
        upload_dir: Where uploads and normalized PDFs live
        estimator: CostEstimator reading from the same cache
    """

    def __init__(
        self,
        cache_store: ImageCacheStore,
        raster_engine: RasterEngine,
        upload_dir: str | Path,
        estimator: Optional[CostEstimator] = None,
        analyzer: Optional[PDFAnalyzer] = None,
    ):
        self.cache_store = cache_store
        self.raster_engine = raster_engine
        self.upload_dir = Path(upload_dir)
        self.estimator = estimator or CostEstimator(cache_store)
        self.analyzer = analyzer or PDFAnalyzer()

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.cache_store.ensure_partitions()

    # =========================================================================
    # UPLOAD
    # =========================================================================

    def convert_upload(self, source_pdf: str | Path, basename: str) -> UploadSession:
        """
        Convert an uploaded PDF into cached letter and legal page images.

        Once the basename is accepted, the source file is always deleted,
        on success or failure.

        Raises:
            InvalidInputError: malformed basename or unreadable PDF
            ConversionError: normalization, rasterization or publish failed
        """
        validate_basename(basename)
        source_pdf = Path(source_pdf)
        upload_logger = get_upload_logger(basename)
        staging_root: Optional[Path] = None

        try:
            # STEP 1: Drop every page from previous uploads
            for paper in PaperSize:
                self.cache_store.clear(paper)

            # STEP 2: Page count and first-page size
            info = self.analyzer.analyze(source_pdf)
            upload_logger.info(
                f"Analyzed {source_pdf.name}: {info.pages} pages, "
                f"{info.width_pt:.0f}x{info.height_pt:.0f}pt ({info.original_size})"
            )

            # STEP 3: Normalize letter ‖ legal
            normalized = {
                paper: normalized_pdf_path(self.upload_dir, basename, paper)
                for paper in PaperSize
            }
            self._fan_out(
                lambda paper: normalize_for_paper(source_pdf, normalized[paper], paper)
            )
            upload_logger.info("Normalized letter and legal variants")

            # STEP 4: Rasterize letter ‖ legal into staging
            self.cache_store.root.mkdir(parents=True, exist_ok=True)
            staging_parent = self.cache_store.root / STAGING_DIRNAME
            staging_parent.mkdir(parents=True, exist_ok=True)
            staging_root = Path(tempfile.mkdtemp(prefix=f"{basename}-", dir=staging_parent))

            staged = self._fan_out(
                lambda paper: self._rasterize_one(
                    normalized[paper], staging_root / paper.value, basename, paper
                )
            )

            # STEP 5: Both renderings must agree before anything is published
            letter_count = len(staged[PaperSize.LETTER])
            legal_count = len(staged[PaperSize.LEGAL])
            if letter_count != legal_count:
                raise ConversionError(
                    f"Page count mismatch: letter={letter_count}, legal={legal_count}",
                    basename=basename,
                )
            if letter_count != info.pages:
                upload_logger.warning(
                    f"Rendered {letter_count} pages but PDF reports {info.pages}"
                )

            page_sets: Dict[PaperSize, PageSet] = {
                paper: self.cache_store.publish(paper, basename, staged[paper])
                for paper in PaperSize
            }

            # STEP 6: Source is transient
            source_pdf.unlink(missing_ok=True)

            upload_logger.info(f"Upload {basename} ready: {letter_count} pages per size")
            return UploadSession(
                basename=basename,
                total_pages=info.pages,
                original_size=info.original_size,
                letter=page_sets[PaperSize.LETTER],
                legal=page_sets[PaperSize.LEGAL],
            )

        except PisoPrintError as exc:
            upload_logger.error(f"Upload {basename} failed: {exc}")
            self._discard_failed_upload(source_pdf, basename)
            raise
        except Exception as exc:
            upload_logger.error(f"Upload {basename} failed: {exc}", exc_info=True)
            self._discard_failed_upload(source_pdf, basename)
            raise ConversionError(f"Conversion failed: {exc}", basename=basename) from exc
        finally:
            if staging_root is not None:
                shutil.rmtree(staging_root, ignore_errors=True)

    def _rasterize_one(
        self, pdf_path: Path, out_dir: Path, basename: str, paper: PaperSize
    ) -> List[Path]:
        try:
            return self.raster_engine.rasterize(pdf_path, out_dir, basename)
        except ConversionError as exc:
            exc.paper_size = paper.value
            exc.details["paper_size"] = paper.value
            raise

    @staticmethod
    def _fan_out(task: Callable[[PaperSize], Any]) -> Dict[PaperSize, Any]:
        """
        Run ``task`` for letter and legal in parallel and join both.

        Both branches always finish before this returns or raises; the first
        failure (in letter, legal order) is re-raised.
        """
        def run(paper: PaperSize) -> Any:
            set_thread_name(f"Convert-{paper.value}")
            return task(paper)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="Convert") as pool:
            futures = {paper: pool.submit(run, paper) for paper in PaperSize}

        return {paper: future.result() for paper, future in futures.items()}

    def _discard_failed_upload(self, source_pdf: Path, basename: str) -> None:
        """Best-effort removal of the source and normalized PDFs."""
        paths = [source_pdf] + [
            normalized_pdf_path(self.upload_dir, basename, paper) for paper in PaperSize
        ]
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning(f"Could not remove {path.name}: {exc}")

    # =========================================================================
    # COST
    # =========================================================================

    def calculate_cost(
        self,
        paper: str,
        basename: str,
        color_mode: str,
        pages: str = "",
        copies: Any = 1,
        page_mode: Optional[str] = None,
        page_range: Optional[str] = "",
    ) -> CostQuote:
        """
        Quote a page selection for an existing upload.

        With ``page_mode`` (all/odd/even/custom) the selection is resolved
        against the number of cached pages and ``pages`` is ignored; the
        quote then carries the corrected range text.

        Raises:
            InvalidInputError: malformed basename/paper, or no pages selected
            CacheMissError: no cached page matched
        """
        validate_basename(basename)
        if not page_mode:
            return self.estimator.estimate(paper, basename, color_mode, pages, copies)

        selection = self.resolve_selection(paper, basename, page_mode, page_range)
        quote = self.estimator.estimate(
            paper, basename, color_mode, selection.as_page_list(), copies
        )
        return replace(quote, selection=selection.canonical or selection.as_page_list())

    def resolve_selection(
        self,
        paper: str,
        basename: str,
        page_mode: str,
        page_range: Optional[str] = "",
    ) -> PageSelection:
        """Resolve a page mode against the pages cached for ``paper``."""
        try:
            paper_size = PaperSize.from_value(paper)
        except ValueError as exc:
            raise InvalidInputError(f"Invalid paper size: {paper}", field="paper") from exc

        total_pages = len(self.cache_store.page_set(paper_size, basename))
        if total_pages == 0:
            raise CacheMissError(basename, paper_size.value)

        selection = select_pages(page_mode, total_pages, page_range)
        logger.debug(
            f"Page mode {page_mode!r} over {total_pages} pages -> {selection.as_page_list() or 'none'}"
        )
        return selection

    # =========================================================================
    # CLEANUP
    # =========================================================================

    def cleanup(self, basename: str) -> int:
        """Remove every cached page and normalized PDF of ``basename``."""
        validate_basename(basename)
        return self.cache_store.invalidate(basename, upload_dir=self.upload_dir)
