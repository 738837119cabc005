"""Page ordering for printable map documents.

A document is planned before anything is drawn. Map tiles come in
row-major order, each optionally followed by a backside page that carries
its number for double-sided printing, and the document always ends with an
assembly guide showing every page number in its physical position.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..core.layout import CropArea, GridLayout, generate_crop_area

GUIDE_ORIGIN_X = 50.0
GUIDE_ORIGIN_Y = 100.0
GUIDE_GRID_SIZE = 200.0


class PageKind(str, Enum):
    MAP = "map"
    BACKSIDE = "backside"
    ASSEMBLY_GUIDE = "assembly_guide"


@dataclass(frozen=True)
class GuideCell:
    """One cell of the assembly guide grid, positioned from the page's top-left."""

    page_number: int
    grid_x: int
    grid_y: int
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class PlannedPage:
    kind: PageKind
    page_number: Optional[int] = None
    grid_x: Optional[int] = None
    grid_y: Optional[int] = None
    crop: Optional[CropArea] = None


@dataclass
class DocumentPlan:
    layout: GridLayout
    scale: float
    pages: List[PlannedPage] = field(default_factory=list)
    guide_cells: List[GuideCell] = field(default_factory=list)

    @property
    def map_pages(self) -> List[PlannedPage]:
        return [page for page in self.pages if page.kind is PageKind.MAP]

    @property
    def backside_pages(self) -> List[PlannedPage]:
        return [page for page in self.pages if page.kind is PageKind.BACKSIDE]

    @property
    def page_count(self) -> int:
        return len(self.pages)


def expected_page_count(layout: GridLayout, generate_backside_numbers: bool) -> int:
    """Map pages, plus one backside page per tile except the last, plus the guide."""
    backside = layout.total_pages - 1 if generate_backside_numbers else 0
    return layout.total_pages + backside + 1


def build_guide_cells(layout: GridLayout) -> List[GuideCell]:
    """Lay out the miniature page grid shown on the assembly guide."""
    cell_width = GUIDE_GRID_SIZE / layout.pages_x
    cell_height = GUIDE_GRID_SIZE / layout.pages_y
    return [
        GuideCell(
            page_number=layout.page_number(x, y),
            grid_x=x,
            grid_y=y,
            x=GUIDE_ORIGIN_X + x * cell_width,
            y=GUIDE_ORIGIN_Y + y * cell_height,
            width=cell_width,
            height=cell_height,
        )
        for x, y in layout.positions()
    ]


def plan_document(
    layout: GridLayout,
    image_width: int,
    image_height: int,
    scale: float,
    generate_backside_numbers: bool,
) -> DocumentPlan:
    """
    Build the ordered page list for one map.

    Args:
        layout: Grid geometry from calculate_grid_layout
        image_width: Source image width in pixels
        image_height: Source image height in pixels
        scale: Calibrated scale the layout was computed with
        generate_backside_numbers: Interleave numbered backside pages

    Returns:
        DocumentPlan whose pages are in print order

    Raises:
        ProcessingError: If any tile would be an empty crop
    """
    plan = DocumentPlan(layout=layout, scale=scale)

    for x, y in layout.positions():
        page_number = layout.page_number(x, y)
        crop = generate_crop_area(x, y, layout, image_width, image_height, scale)
        plan.pages.append(
            PlannedPage(
                kind=PageKind.MAP,
                page_number=page_number,
                grid_x=x,
                grid_y=y,
                crop=crop,
            )
        )
        # The last sheet has no following sheet, so it gets no backside
        if generate_backside_numbers and not layout.is_last(x, y):
            plan.pages.append(
                PlannedPage(
                    kind=PageKind.BACKSIDE,
                    page_number=page_number,
                    grid_x=x,
                    grid_y=y,
                )
            )

    plan.guide_cells = build_guide_cells(layout)
    plan.pages.append(PlannedPage(kind=PageKind.ASSEMBLY_GUIDE))
    return plan
