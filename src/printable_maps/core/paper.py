"""Paper formats in PDF points (72 per inch)."""

from typing import Dict, NamedTuple, Optional

from .logging_config import get_logger


class PaperSize(NamedTuple):
    """A named paper format."""

    width: int
    height: int
    name: str


PAPER_SIZES: Dict[str, PaperSize] = {
    "a4": PaperSize(595, 842, "A4"),
    "a3": PaperSize(842, 1191, "A3"),
    "a2": PaperSize(1191, 1684, "A2"),
    "a1": PaperSize(1684, 2384, "A1"),
    "a0": PaperSize(2384, 3370, "A0"),
    "letter": PaperSize(612, 792, "Letter"),
    "legal": PaperSize(612, 1008, "Legal"),
    "tabloid": PaperSize(792, 1224, "Tabloid"),
}

DEFAULT_PAPER_SIZE = "a4"


def get_paper_size(name: Optional[str]) -> PaperSize:
    """
    Resolve a paper format by name.

    Unknown names fall back to A4 instead of failing.

    Args:
        name: Paper format key such as "a4" or "letter" (case-insensitive)

    Returns:
        The matching PaperSize
    """
    key = (name or "").strip().lower()
    paper = PAPER_SIZES.get(key)
    if paper is None:
        get_logger("printable-maps.paper").warning(
            f"Unknown paper size {name!r}, falling back to {DEFAULT_PAPER_SIZE}"
        )
        return PAPER_SIZES[DEFAULT_PAPER_SIZE]
    return paper
