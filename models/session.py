"""
Upload session data models.

These models describe what one upload leaves behind on disk:
two page sets (letter and legal), each an ordered run of cached page images
keyed by (basename, paper size, page index).

Thread Safety:
    - All models are frozen dataclasses, safe to hand between the
      conversion threads and the request thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Tuple


PAGE_IMAGE_EXTENSION = ".png"


class PaperSize(Enum):
    """
    Target page geometries, in PDF points (72 per inch).

    The value is the partition name used for the cache directory and URLs.
    """

    LETTER = "letter"
    LEGAL = "legal"

    @property
    def width(self) -> float:
        return 612.0

    @property
    def height(self) -> float:
        return 792.0 if self is PaperSize.LETTER else 1008.0

    @classmethod
    def from_value(cls, value: str) -> "PaperSize":
        """Look up by partition name; raises ValueError for anything else."""
        return cls(str(value).strip().lower())


class ColorMode(Enum):
    """Print color mode selected at the kiosk."""

    COLOR = "color"
    BW = "bw"


@dataclass(frozen=True)
class CachedPage:
    """A rendered page image in one cache partition."""

    basename: str
    paper_size: PaperSize
    page_index: int
    """1-based page number."""

    path: Path

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def url(self) -> str:
        """Static URL the kiosk UI loads the preview from."""
        return f"/cache/{self.paper_size.value}/{self.filename}"

    @staticmethod
    def canonical_name(basename: str, page_index: int) -> str:
        """File name written for a page: ``{basename}_{index}.png``, no padding."""
        return f"{basename}_{page_index}{PAGE_IMAGE_EXTENSION}"


@dataclass(frozen=True)
class PageSet:
    """
    All cached pages of one basename in one partition, ascending by index.
    """

    basename: str
    paper_size: PaperSize
    pages: Tuple[CachedPage, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.pages)

    @property
    def urls(self) -> List[str]:
        return [page.url for page in self.pages]


@dataclass(frozen=True)
class UploadSession:
    """
    Result of a successful upload conversion.

    Lifecycle:
        1. Created by ConversionService.convert_upload()
        2. Superseded by the next upload (partitions are cleared first)
        3. Removed by an explicit cleanup (ImageCacheStore.invalidate)
    """

    basename: str
    total_pages: int
    original_size: str
    """Best-effort "letter"/"legal" guess used to preselect the UI default."""

    letter: PageSet
    legal: PageSet

    def page_set(self, paper_size: PaperSize) -> PageSet:
        return self.letter if paper_size is PaperSize.LETTER else self.legal

    def to_response(self) -> Dict[str, Any]:
        """JSON body returned by the upload endpoint."""
        return {
            "success": True,
            "images": {
                PaperSize.LETTER.value: self.letter.urls,
                PaperSize.LEGAL.value: self.legal.urls,
            },
            "totalPages": self.total_pages,
            "originalSize": self.original_size,
            "baseName": self.basename,
        }
