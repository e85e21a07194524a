"""
Rendered-page image cache.

Layout:
    <root>/letter/{basename}_{n}.png
    <root>/legal/{basename}_{n}.png

One directory per paper size ("partition"), flat, shared by every upload.
There is no locking: the kiosk runs one session at a time, and every upload
clears both partitions first. Two kiosks on one server can race here.

Naming:
    - Written: ``{basename}_{n}.png``
    - Also matched on lookup/invalidate: legacy ``{basename}-{n}.png`` files
      left by older releases. They are never written.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from core.exceptions import InvalidInputError
from logging_config import get_logger
from models.session import CachedPage, PageSet, PaperSize, PAGE_IMAGE_EXTENSION


logger = get_logger(__name__)

BASENAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_TRAILING_INDEX_RE = re.compile(rf"(\d+){re.escape(PAGE_IMAGE_EXTENSION)}$")


def validate_basename(basename: str) -> str:
    """
    Return ``basename`` if it is filesystem-safe, else raise.

    Raises:
        InvalidInputError: if empty or containing anything but [A-Za-z0-9_-]
    """
    if not isinstance(basename, str) or not BASENAME_RE.match(basename):
        raise InvalidInputError("Invalid basename", field="baseName")
    return basename


def sanitize_basename(raw: str) -> str:
    """Strip every character outside [A-Za-z0-9_-] (may return "")."""
    return re.sub(r"[^A-Za-z0-9_-]", "", str(raw or ""))


def _prefixes(basename: str) -> tuple[str, str]:
    return f"{basename}_", f"{basename}-"


def _page_index(filename: str, basename: str) -> Optional[int]:
    """Page index of a cached file belonging to ``basename``, else None."""
    for prefix in _prefixes(basename):
        if not filename.startswith(prefix):
            continue
        rest = filename[len(prefix):]
        match = _TRAILING_INDEX_RE.fullmatch(rest)
        if match:
            return int(match.group(1))
    return None


class ImageCacheStore:
    """
    Paper-size partitioned directory of rendered pages.

    Operations:
        clear(paper)                - drop every page image in a partition
        invalidate(basename)        - drop one upload's pages + normalized PDFs
        lookup(paper, basename, n)  - matching pages, ascending by index
        publish(paper, basename, p) - move staged pages into the partition
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def ensure_partitions(self) -> None:
        for paper in PaperSize:
            self.partition_dir(paper).mkdir(parents=True, exist_ok=True)

    def partition_dir(self, paper: PaperSize | str) -> Path:
        if not isinstance(paper, PaperSize):
            paper = PaperSize.from_value(paper)
        return self.root / paper.value

    def clear(self, paper: PaperSize | str) -> int:
        """
        Delete every page image in the partition.

        Best-effort: individual failures are logged and skipped.

        Returns:
            Number of files removed
        """
        folder = self.partition_dir(paper)
        try:
            entries = list(folder.iterdir())
        except FileNotFoundError:
            return 0
        except OSError as exc:
            logger.error(f"Cannot list {folder}: {exc}")
            return 0

        removed = 0
        for entry in entries:
            if entry.suffix != PAGE_IMAGE_EXTENSION:
                continue
            try:
                entry.unlink()
                removed += 1
            except OSError as exc:
                logger.warning(f"Could not delete {entry.name}: {exc}")

        logger.debug(f"Cleared {removed} files from {folder.name}")
        return removed

    def invalidate(self, basename: str, upload_dir: Optional[str | Path] = None) -> int:
        """
        Delete everything cached for ``basename`` in both partitions, plus
        its normalized PDFs in ``upload_dir`` if given.

        Returns:
            Number of files removed
        """
        validate_basename(basename)
        prefixes = _prefixes(basename)
        removed = 0

        for paper in PaperSize:
            folder = self.partition_dir(paper)
            try:
                entries = list(folder.iterdir())
            except FileNotFoundError:
                continue
            for entry in entries:
                if entry.name.startswith(prefixes):
                    removed += self._unlink_quietly(entry)

        if upload_dir is not None:
            for paper in PaperSize:
                side_file = normalized_pdf_path(upload_dir, basename, paper)
                if side_file.exists():
                    removed += self._unlink_quietly(side_file)

        logger.info(f"Invalidated {basename}: {removed} files removed")
        return removed

    def lookup(
        self,
        paper: PaperSize | str,
        basename: str,
        pages: Optional[Iterable[int]] = None,
    ) -> List[CachedPage]:
        """
        Cached pages of ``basename`` whose index is in ``pages``.

        ``pages=None`` means every page. A missing partition directory yields
        an empty list.

        Returns:
            Pages sorted ascending by page index
        """
        if not isinstance(paper, PaperSize):
            paper = PaperSize.from_value(paper)
        wanted = None if pages is None else set(pages)
        folder = self.partition_dir(paper)

        try:
            filenames = os.listdir(folder)
        except FileNotFoundError:
            return []

        found: Dict[int, CachedPage] = {}
        for filename in filenames:
            index = _page_index(filename, basename)
            if index is None or (wanted is not None and index not in wanted):
                continue
            # Canonical name wins over a legacy duplicate of the same page
            if index in found and not filename.startswith(f"{basename}_"):
                continue
            found[index] = CachedPage(basename, paper, index, folder / filename)

        return [found[index] for index in sorted(found)]

    def page_set(self, paper: PaperSize | str, basename: str) -> PageSet:
        if not isinstance(paper, PaperSize):
            paper = PaperSize.from_value(paper)
        return PageSet(basename, paper, tuple(self.lookup(paper, basename)))

    def publish(self, paper: PaperSize, basename: str, staged: Sequence[Path]) -> PageSet:
        """
        Move staged page images into the partition.

        Staging must be on the same filesystem so each move is an atomic
        rename.
        """
        folder = self.partition_dir(paper)
        folder.mkdir(parents=True, exist_ok=True)

        for path in staged:
            os.replace(path, folder / Path(path).name)

        return self.page_set(paper, basename)

    @staticmethod
    def _unlink_quietly(path: Path) -> int:
        try:
            path.unlink()
            return 1
        except OSError as exc:
            logger.warning(f"Could not delete {path.name}: {exc}")
            return 0


def normalized_pdf_path(upload_dir: str | Path, basename: str, paper: PaperSize) -> Path:
    """Side file holding the normalized PDF: ``{basename}_{paper}.pdf``."""
    return Path(upload_dir) / f"{basename}_{paper.value}.pdf"
