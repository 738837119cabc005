"""Planning and rendering of printable map documents."""

from .assembler import (
    DocumentPlan,
    GuideCell,
    PageKind,
    PlannedPage,
    build_guide_cells,
    expected_page_count,
    plan_document,
)
from .renderer import render_document

__all__ = [
    "DocumentPlan",
    "GuideCell",
    "PageKind",
    "PlannedPage",
    "build_guide_cells",
    "expected_page_count",
    "plan_document",
    "render_document",
]
