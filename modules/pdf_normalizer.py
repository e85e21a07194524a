"""
PDF normalization onto fixed letter/legal page geometries.

Every source page is stretched (independently on X and Y) to exactly fill
the target page. Aspect ratio is not preserved; the printed sheet is always
fully covered.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from pypdf import PdfReader, PdfWriter, Transformation
from pypdf.errors import PyPdfError

from core.exceptions import InvalidInputError, NormalizationError
from logging_config import get_logger
from models.session import PaperSize


logger = get_logger(__name__)

# Classification threshold for sizes that are neither exact letter nor legal
LEGAL_HEIGHT_THRESHOLD_PT = 900


def _sanitize_dimension(value: Any) -> float:
    """Zero, negative or NaN page dimensions become 1pt."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1.0
    if math.isnan(number) or number < 1:
        return 1.0
    return number


def classify_original_size(width: float, height: float) -> str:
    """
    Best-effort guess of the document's intended paper size.

    Used only to preselect the UI default; never blocks a conversion.
    """
    w, h = round(width), round(height)
    if (w, h) == (612, 792):
        return PaperSize.LETTER.value
    if (w, h) == (612, 1008):
        return PaperSize.LEGAL.value
    return PaperSize.LEGAL.value if height > LEGAL_HEIGHT_THRESHOLD_PT else PaperSize.LETTER.value


@dataclass(frozen=True)
class PdfInfo:
    pages: int
    width_pt: float
    height_pt: float
    original_size: str
    size_kb: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": self.pages,
            "width_pt": self.width_pt,
            "height_pt": self.height_pt,
            "original_size": self.original_size,
            "size_kb": self.size_kb,
        }


class PDFAnalyzer:
    """Read page count and first-page size from an uploaded PDF."""

    def analyze(self, pdf_path: str | Path) -> PdfInfo:
        path = Path(pdf_path)
        size_kb = round(path.stat().st_size / 1024, 2) if path.exists() else 0.0

        try:
            reader = PdfReader(str(path))
            page_count = len(reader.pages)
            if page_count == 0:
                raise InvalidInputError("The uploaded PDF has no pages.", field="pdfFile")
            mediabox = reader.pages[0].mediabox
            width = float(mediabox.width)
            height = float(mediabox.height)
        except InvalidInputError:
            raise
        except (PyPdfError, OSError, ValueError) as exc:
            raise InvalidInputError(f"Could not read PDF: {exc}", field="pdfFile") from exc

        return PdfInfo(
            pages=page_count,
            width_pt=width,
            height_pt=height,
            original_size=classify_original_size(width, height),
            size_kb=size_kb,
        )


def normalize_pdf(
    source_path: str | Path,
    target_path: str | Path,
    width: float,
    height: float,
) -> int:
    """
    Write a copy of ``source_path`` where every page is ``width`` x ``height``.

    The output appears at ``target_path`` only if every page was placed and
    the file saved; otherwise nothing is left behind.

    Returns:
        Number of pages written (equal to the source page count)

    Raises:
        NormalizationError: if any page cannot be read, placed or saved
    """
    source_path = Path(source_path)
    target_path = Path(target_path)
    part_path = target_path.with_name(target_path.name + ".part")

    try:
        reader = PdfReader(str(source_path))
        writer = PdfWriter()

        for page_number, source_page in enumerate(reader.pages, start=1):
            box = source_page.mediabox
            src_w = _sanitize_dimension(box.width)
            src_h = _sanitize_dimension(box.height)

            transform = (
                Transformation()
                .translate(-float(box.left), -float(box.bottom))
                .scale(width / src_w, height / src_h)
            )

            target_page = writer.add_blank_page(width=width, height=height)
            target_page.merge_transformed_page(source_page, transform)
            logger.debug(
                f"Page {page_number}: {src_w:.1f}x{src_h:.1f} -> {width:.0f}x{height:.0f}"
            )

        with open(part_path, "wb") as handle:
            writer.write(handle)
        os.replace(part_path, target_path)

    except Exception as exc:
        part_path.unlink(missing_ok=True)
        raise NormalizationError(
            f"Failed to normalize PDF to {width:.0f}x{height:.0f}: {exc}",
            details={"source": source_path.name},
        ) from exc

    return len(reader.pages)


def normalize_for_paper(source_path: str | Path, target_path: str | Path, paper: PaperSize) -> int:
    """normalize_pdf() for one of the fixed paper sizes, tagging errors with it."""
    try:
        return normalize_pdf(source_path, target_path, paper.width, paper.height)
    except NormalizationError as exc:
        exc.paper_size = paper.value
        exc.details["paper_size"] = paper.value
        raise
