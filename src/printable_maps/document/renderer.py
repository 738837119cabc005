"""
Draw a planned document onto PDF pages.
"""

import io
from typing import Tuple

import PIL.Image
import PIL.ImageColor
import reportlab.lib.utils
import reportlab.pdfgen.canvas

from ..core.exceptions import processing_error_handler
from ..core.image_utils import crop_tile
from ..core.models import MapSettings, OutlineStyle
from ..core.paper import PaperSize
from .assembler import DocumentPlan, GuideCell, PageKind, PlannedPage

FONT_NAME = "Helvetica"
OUTLINE_MARGIN = 10.0
BACKSIDE_FONT_SIZE = 72
GUIDE_TITLE = "Assembly Guide"
GUIDE_TITLE_FONT_SIZE = 16
GUIDE_LABEL_FONT_SIZE = 10
# dash uses longer on/off segments than dotted
DASH_PATTERNS = {
    OutlineStyle.SOLID: [],
    OutlineStyle.DASH: [5, 5],
    OutlineStyle.DOTTED: [1, 3],
}


def color_to_rgb(color: str) -> Tuple[float, float, float]:
    """
    Convert a CSS-style colour into ReportLab RGB fractions.

    Args:
        color: Colour string understood by Pillow ("#ff0000", "red", ...).

    Returns:
        (r, g, b) each in 0..1.
    """
    rgb = PIL.ImageColor.getrgb(color)
    return (rgb[0] / 255.0, rgb[1] / 255.0, rgb[2] / 255.0)


def draw_outline(
    pdf: reportlab.pdfgen.canvas.Canvas, paper: PaperSize, settings: MapSettings
) -> None:
    """
    Stroke the cut line inset from the sheet edge.
    """
    pdf.saveState()
    red, green, blue = color_to_rgb(settings.outline_color)
    pdf.setStrokeColorRGB(red, green, blue)
    pdf.setLineWidth(settings.outline_thickness)
    pdf.setDash(DASH_PATTERNS[settings.outline_style], 0)
    pdf.rect(
        OUTLINE_MARGIN,
        OUTLINE_MARGIN,
        paper.width - 2 * OUTLINE_MARGIN,
        paper.height - 2 * OUTLINE_MARGIN,
        stroke=1,
        fill=0,
    )
    pdf.restoreState()


def draw_map_page(
    pdf: reportlab.pdfgen.canvas.Canvas,
    page: PlannedPage,
    image: PIL.Image.Image,
    plan: DocumentPlan,
    settings: MapSettings,
) -> None:
    """
    Draw one tile scaled back up to print size, anchored at the top-left.

    Args:
        pdf: ReportLab canvas.
        page: Planned map page with its crop.
        image: Decoded source image.
        plan: Document plan (for paper size and scale).
        settings: Style configuration.
    """
    paper = plan.layout.paper
    tile_bytes = crop_tile(image, page.crop)
    tile_reader = reportlab.lib.utils.ImageReader(io.BytesIO(tile_bytes))
    draw_width = page.crop.width * plan.scale
    draw_height = page.crop.height * plan.scale
    pdf.drawImage(
        tile_reader,
        0,
        paper.height - draw_height,
        width=draw_width,
        height=draw_height,
        mask="auto",
    )
    if settings.outline_style is not OutlineStyle.NONE:
        draw_outline(pdf, paper, settings)


def draw_backside_page(
    pdf: reportlab.pdfgen.canvas.Canvas, page: PlannedPage, paper: PaperSize
) -> None:
    """
    Draw only the page number, centred in large type.
    """
    pdf.setFillColorRGB(0.0, 0.0, 0.0)
    pdf.setFont(FONT_NAME, BACKSIDE_FONT_SIZE)
    pdf.drawCentredString(
        paper.width / 2.0,
        paper.height / 2.0 - BACKSIDE_FONT_SIZE / 3.0,
        str(page.page_number),
    )


def draw_guide_cell(
    pdf: reportlab.pdfgen.canvas.Canvas, cell: GuideCell, paper: PaperSize
) -> None:
    """
    Stroke one guide cell and label it with its page number.
    """
    # guide cells are positioned from the top-left; the canvas origin is bottom-left
    cell_bottom = paper.height - cell.y - cell.height
    pdf.rect(cell.x, cell_bottom, cell.width, cell.height, stroke=1, fill=0)
    pdf.drawCentredString(
        cell.x + cell.width / 2.0,
        cell_bottom + cell.height / 2.0 - GUIDE_LABEL_FONT_SIZE / 3.0,
        str(cell.page_number),
    )


def draw_assembly_guide(
    pdf: reportlab.pdfgen.canvas.Canvas, plan: DocumentPlan
) -> None:
    """
    Draw the title and the miniature grid of page numbers.
    """
    paper = plan.layout.paper
    pdf.setFillColorRGB(0.0, 0.0, 0.0)
    pdf.setStrokeColorRGB(0.0, 0.0, 0.0)
    pdf.setLineWidth(1)
    pdf.setFont(FONT_NAME, GUIDE_TITLE_FONT_SIZE)
    pdf.drawString(50, paper.height - 50 - GUIDE_TITLE_FONT_SIZE, GUIDE_TITLE)

    pdf.setFont(FONT_NAME, GUIDE_LABEL_FONT_SIZE)
    for cell in plan.guide_cells:
        draw_guide_cell(pdf, cell, paper)


def render_document(
    plan: DocumentPlan, image: PIL.Image.Image, settings: MapSettings
) -> bytes:
    """
    Render every planned page into one PDF.

    Args:
        plan: Ordered pages from plan_document.
        image: Decoded source image the plan was computed for.
        settings: Style configuration.

    Returns:
        PDF bytes.

    Raises:
        ProcessingError: If any page fails; no partial document is returned.
    """
    paper = plan.layout.paper
    buffer = io.BytesIO()
    pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(paper.width, paper.height))
    pdf.setCreator("printable-maps")
    pdf.setTitle("Printable map")

    for index, page in enumerate(plan.pages):
        description = f"Failed to render page {index + 1} ({page.kind.value})"
        with processing_error_handler(description):
            if page.kind is PageKind.MAP:
                draw_map_page(pdf, page, image, plan, settings)
            elif page.kind is PageKind.BACKSIDE:
                draw_backside_page(pdf, page, paper)
            else:
                draw_assembly_guide(pdf, plan)
            pdf.showPage()

    with processing_error_handler("Failed to write PDF"):
        pdf.save()
    return buffer.getvalue()
