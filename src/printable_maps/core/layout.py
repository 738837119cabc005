"""Grid layout and tile crop geometry for splitting a map across sheets."""

import math
from dataclasses import dataclass
from typing import Any, Iterator, Tuple, Union

from .exceptions import InvalidDimensionError, ProcessingError, ValidationError
from .paper import PaperSize, get_paper_size

Number = Union[int, float]


def _require_positive(name: str, value: Any) -> Number:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDimensionError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidDimensionError(f"{name} must be positive, got {value!r}")
    return value


# Decimal places kept when converting sheet edges to source pixels. Products
# such as 2625 * 0.68 carry float noise that must not push an edge across a
# whole pixel.
EDGE_PRECISION = 9


def _pixel_edge(sheets: int, sheet_extent: Number, scale: Number) -> int:
    """Source pixel at which the given number of sheets ends, floored."""
    return math.floor(round(sheets * sheet_extent / scale, EDGE_PRECISION))


def _sheets_needed(image_extent: Number, sheet_extent: Number, scale: Number) -> int:
    """Smallest sheet count whose far edge reaches the end of the image."""
    target = math.ceil(image_extent)
    sheets = max(1, math.ceil(image_extent * scale / sheet_extent))
    while sheets > 1 and _pixel_edge(sheets - 1, sheet_extent, scale) >= target:
        sheets -= 1
    while _pixel_edge(sheets, sheet_extent, scale) < target:
        sheets += 1
    return sheets


@dataclass(frozen=True)
class GridLayout:
    """Partition of a scaled image into sheets of one paper format."""

    pages_x: int
    pages_y: int
    paper: PaperSize
    scaled_width: float
    scaled_height: float

    @property
    def total_pages(self) -> int:
        return self.pages_x * self.pages_y

    def page_number(self, x: int, y: int) -> int:
        """1-based, row-major: left to right, then top to bottom."""
        return y * self.pages_x + x + 1

    def positions(self) -> Iterator[Tuple[int, int]]:
        """Yield (x, y) grid positions in row-major order."""
        for y in range(self.pages_y):
            for x in range(self.pages_x):
                yield x, y

    def is_last(self, x: int, y: int) -> bool:
        return x == self.pages_x - 1 and y == self.pages_y - 1

    def page_coordinates(self, index: int) -> Tuple[int, int, int, int]:
        """
        Map a 0-based page index back onto the grid.

        Returns:
            (grid_x, grid_y, offset_x, offset_y) where the offsets are the
            sheet's top-left corner in scaled points.
        """
        if not 0 <= index < self.total_pages:
            raise ValidationError(
                f"Page index {index} outside 0..{self.total_pages - 1}"
            )
        grid_x = index % self.pages_x
        grid_y = index // self.pages_x
        return (
            grid_x,
            grid_y,
            grid_x * self.paper.width,
            grid_y * self.paper.height,
        )


@dataclass(frozen=True)
class CropArea:
    """Integer crop rectangle in source pixel space."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def as_box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower) box as expected by Pillow."""
        return (self.left, self.top, self.right, self.bottom)


def calculate_grid_layout(
    image_width: Number, image_height: Number, scale: Number, paper_size: str
) -> GridLayout:
    """
    Calculate how many sheets are needed to print an image at a given scale.

    Args:
        image_width: Source image width in pixels
        image_height: Source image height in pixels
        scale: Output points per source pixel (1.0 = native size)
        paper_size: Paper format name; unknown names fall back to A4

    Returns:
        GridLayout with at least one sheet in each direction

    Raises:
        InvalidDimensionError: If width, height or scale is not positive
    """
    _require_positive("image width", image_width)
    _require_positive("image height", image_height)
    _require_positive("scale", scale)

    paper = get_paper_size(paper_size)
    scaled_width = image_width * scale
    scaled_height = image_height * scale

    return GridLayout(
        pages_x=_sheets_needed(image_width, paper.width, scale),
        pages_y=_sheets_needed(image_height, paper.height, scale),
        paper=paper,
        scaled_width=scaled_width,
        scaled_height=scaled_height,
    )


def generate_crop_area(
    x: int,
    y: int,
    layout: GridLayout,
    image_width: int,
    image_height: int,
    scale: Number,
) -> CropArea:
    """
    Compute the source rectangle printed on the sheet at grid position (x, y).

    Edges are floored to whole pixels. The far edge of a tile is the floored
    near edge of the next tile, clamped to the image, so adjacent tiles
    never overlap or leave a gap and the last row and column are partial.

    Raises:
        ValidationError: If (x, y) lies outside the grid
        ProcessingError: If the resulting rectangle is empty
    """
    if not (0 <= x < layout.pages_x and 0 <= y < layout.pages_y):
        raise ValidationError(
            f"Page ({x}, {y}) outside {layout.pages_x}x{layout.pages_y} grid"
        )
    _require_positive("scale", scale)

    left = _pixel_edge(x, layout.paper.width, scale)
    top = _pixel_edge(y, layout.paper.height, scale)
    right = min(_pixel_edge(x + 1, layout.paper.width, scale), image_width)
    bottom = min(_pixel_edge(y + 1, layout.paper.height, scale), image_height)

    crop = CropArea(
        left=left,
        top=top,
        width=max(0, right - left),
        height=max(0, bottom - top),
    )
    if crop.area == 0:
        raise ProcessingError(f"Empty crop for page ({x}, {y}): {crop}")
    return crop
