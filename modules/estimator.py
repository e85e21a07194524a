"""Cost estimator for print jobs, driven by cached page renderings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from config import Config
from core.exceptions import CacheMissError, InvalidInputError
from logging_config import get_logger
from models.quote import CostQuote
from models.session import ColorMode, PaperSize
from modules.color_transform import apply_color_mode
from modules.ink_scanner import SECTION_COUNT, scan_used_sections
from modules.page_selection import parse_page_list


@dataclass(frozen=True)
class Pricing:
    """Per-page rates and the per-band ink surcharge, in currency units."""

    color_per_page: float = 10.0
    bw_per_page: float = 5.0
    ink_per_section: float = 0.5

    @classmethod
    def from_config(cls, config: Any = Config) -> "Pricing":
        """Build from a Config class or a Flask ``app.config`` mapping."""
        def read(key: str, default: float) -> float:
            if isinstance(config, dict):
                return float(config.get(key, default))
            return float(getattr(config, key, default))

        return cls(
            color_per_page=read("COST_COLOR_PER_PAGE", cls.color_per_page),
            bw_per_page=read("COST_BW_PER_PAGE", cls.bw_per_page),
            ink_per_section=read("COST_INK_PER_SECTION", cls.ink_per_section),
        )

    def base_per_page(self, color_mode: str) -> float:
        return self.color_per_page if color_mode == ColorMode.COLOR.value else self.bw_per_page


def round_currency(amount: float) -> int:
    """Round half-up to a whole currency unit (2.5 -> 3, not banker's 2)."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _coerce_copies(copies: Any) -> int:
    try:
        value = int(float(copies))
    except (TypeError, ValueError):
        return 1
    return value if value >= 1 else 1


def compute_total(
    pricing: Pricing,
    color_mode: str,
    page_count: int,
    used_sections: int,
    copies: int,
) -> int:
    """
    total = round((base_per_page × pages + ink_surcharge) × copies)

    The ink surcharge is only charged for color jobs; grayscale jobs pay the
    flat per-page rate whatever the scanner found.
    """
    base = pricing.base_per_page(color_mode) * page_count
    surcharge = (
        pricing.ink_per_section * used_sections
        if color_mode == ColorMode.COLOR.value
        else 0.0
    )
    return round_currency((base + surcharge) * copies)


class CostEstimator:
    """
    Quotes a page selection against the rendered-page cache.

    Side effect: in ``bw`` mode the matched cache files are converted to
    grayscale in place. A later ``color`` quote for the same upload will
    see gray pages (and no surcharge) until the document is re-uploaded.
    """

    def __init__(self, cache_store, pricing: Optional[Pricing] = None) -> None:
        self.cache_store = cache_store
        self.pricing = pricing or Pricing.from_config()
        self.logger = get_logger(__name__)

    def estimate(
        self,
        paper: str,
        basename: str,
        color_mode: str,
        pages: str,
        copies: Any = 1,
    ) -> CostQuote:
        """
        Compute the cost for ``pages`` (comma-joined page numbers).

        Raises:
            InvalidInputError: bad paper size, or no pages selected
            CacheMissError: nothing cached for this basename/paper/pages
        """
        try:
            paper_size = PaperSize.from_value(paper)
        except ValueError as exc:
            raise InvalidInputError(f"Invalid paper size: {paper}", field="paper") from exc

        selected = parse_page_list(pages)
        if not selected:
            raise InvalidInputError("No pages selected", field="pages")

        copy_count = _coerce_copies(copies)
        matched = self.cache_store.lookup(paper_size, basename, selected)
        if not matched:
            raise CacheMissError(basename, paper_size.value)

        self.logger.debug(
            f"Estimator inputs: paper={paper_size.value}, color={color_mode}, "
            f"pages={len(matched)}/{len(selected)}, copies={copy_count}"
        )

        # One page at a time; each is a fully decoded image in memory
        used_sections = 0
        for page in matched:
            apply_color_mode(page.path, color_mode)
            used = scan_used_sections(page.path, SECTION_COUNT)
            self.logger.debug(f"Page {page.page_index}: {used}/{SECTION_COUNT} sections used")
            used_sections += used

        total = compute_total(self.pricing, color_mode, len(matched), used_sections, copy_count)

        self.logger.info(
            f"Quote for {basename}: {len(matched)} pages x {copy_count} copies, "
            f"{used_sections} sections -> {total}"
        )

        return CostQuote(
            total_cost=total,
            used_sections=used_sections,
            total_pages=len(matched),
            copies=copy_count,
            color_mode=color_mode,
            paper_size=paper_size.value,
            reasoning=self._build_reasoning(color_mode, len(matched), used_sections, copy_count),
        )

    def _build_reasoning(
        self,
        color_mode: str,
        page_count: int,
        used_sections: int,
        copies: int,
    ) -> str:
        """Human-readable breakdown shown under the total."""
        per_page = self.pricing.base_per_page(color_mode)
        parts = [f"{page_count} page(s) at {per_page:g} each."]

        if color_mode == ColorMode.COLOR.value:
            parts.append(
                f"Color ink surcharge: {used_sections} section(s) at "
                f"{self.pricing.ink_per_section:g} each."
            )
        else:
            parts.append("Black & white printing has no ink surcharge.")

        if copies > 1:
            parts.append(f"Multiplied by {copies} copies.")

        return " ".join(parts)
