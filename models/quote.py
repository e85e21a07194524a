"""
Cost quote model.

Produced by the estimator for one cost request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class CostQuote:
    """A computed printing cost for a page selection."""

    total_cost: int
    """Whole currency units, rounded half-up."""

    used_sections: int
    """Sum of used ink bands over all matched pages."""

    total_pages: int
    """Number of cached pages that matched the selection."""

    copies: int
    color_mode: str
    paper_size: str
    reasoning: str = ""

    selection: str = ""
    """Corrected range text, set when the request used a page mode."""

    def to_response(self) -> Dict[str, Any]:
        """JSON body returned by the cost endpoint."""
        body = {
            "success": True,
            "totalCost": self.total_cost,
            "usedSections": self.used_sections,
            "totalPages": self.total_pages,
            "reasoning": self.reasoning,
        }
        if self.selection:
            body["selection"] = self.selection
        return body
