"""Page selection parsing for custom page ranges like ``"1-3, 5, 9-7"``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Set

from core.exceptions import InvalidInputError


_SINGLE_RE = re.compile(r"^\d+$")
_RANGE_RE = re.compile(r"^(\d+)-(\d+)$")

PAGE_MODES = ("all", "odd", "even", "custom")


@dataclass(frozen=True)
class PageSelection:
    """Validated page numbers plus the corrected range text shown back to the user."""

    pages: FrozenSet[int]
    canonical: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.pages

    def sorted(self) -> list[int]:
        return sorted(self.pages)

    def as_page_list(self) -> str:
        return format_page_list(self.pages)


def _clamp(value: int, total_pages: int) -> int:
    return max(1, min(value, total_pages))


def _require_total(total_pages: int) -> None:
    if not isinstance(total_pages, int) or total_pages < 1:
        raise InvalidInputError(
            f"Total page count must be a positive integer, got {total_pages!r}",
            field="totalPages",
        )


def parse_page_selection(ranges: str | None, total_pages: int) -> PageSelection:
    """
    Parse a comma-separated page range string against a document of ``total_pages``.

    Tokens are single numbers or ``a-b`` ranges; anything else is dropped.
    Endpoints are clamped into [1, total_pages] and reversed ranges swapped.
    The canonical string keeps the surviving tokens in input order.
    """
    _require_total(total_pages)
    if not ranges:
        return PageSelection(frozenset(), "")

    pages: Set[int] = set()
    corrected: list[str] = []

    for token in (part.strip() for part in ranges.split(",")):
        range_match = _RANGE_RE.match(token)
        if range_match:
            start = _clamp(int(range_match.group(1)), total_pages)
            end = _clamp(int(range_match.group(2)), total_pages)
            if start > end:
                start, end = end, start
            pages.update(range(start, end + 1))
            corrected.append(f"{start}-{end}")
        elif _SINGLE_RE.match(token):
            number = _clamp(int(token), total_pages)
            pages.add(number)
            corrected.append(str(number))

    return PageSelection(frozenset(pages), ", ".join(corrected))


def select_pages(mode: str, total_pages: int, ranges: str | None = "") -> PageSelection:
    """
    Resolve a page mode. ``all``/``odd``/``even`` filter 1..N by parity and
    skip the parser entirely; ``custom`` parses ``ranges``.
    """
    _require_total(total_pages)
    every_page = range(1, total_pages + 1)

    if mode == "all":
        return PageSelection(frozenset(every_page))
    if mode == "odd":
        return PageSelection(frozenset(n for n in every_page if n % 2 != 0))
    if mode == "even":
        return PageSelection(frozenset(n for n in every_page if n % 2 == 0))
    if mode == "custom":
        return parse_page_selection(ranges, total_pages)
    return PageSelection(frozenset())


def format_page_list(pages: Iterable[int]) -> str:
    """Comma-joined ascending page numbers: the cost request's wire format."""
    return ",".join(str(n) for n in sorted(set(pages)))


def parse_page_list(text: str | None) -> FrozenSet[int]:
    """
    Lenient server-side read of a comma-joined page list.

    Non-numeric entries are ignored; no clamping happens here because the
    cache lookup only matches pages that were actually rendered.
    """
    if not text:
        return frozenset()

    pages: Set[int] = set()
    for token in str(text).split(","):
        token = token.strip()
        if _SINGLE_RE.match(token):
            pages.add(int(token))
    return frozenset(pages)
