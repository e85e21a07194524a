"""Helper modules for the PisoPrint kiosk."""

__all__ = [
    "color_transform",
    "estimator",
    "ink_scanner",
    "page_selection",
    "pdf_normalizer",
]
