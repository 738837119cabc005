"""Core utilities and shared components for printable maps."""

from .logging_config import get_logger, setup_logger
from .exceptions import (
    BATCH_EXHAUSTED_MESSAGE,
    ConfigurationError,
    InvalidDimensionError,
    NotFoundError,
    PreconditionError,
    PrintableMapsError,
    ProcessingError,
    StorageError,
    ValidationError,
    with_error_handling,
)
from .paper import DEFAULT_PAPER_SIZE, PAPER_SIZES, PaperSize, get_paper_size
from .layout import CropArea, GridLayout, calculate_grid_layout, generate_crop_area
from .models import (
    AppConfig,
    BatchJob,
    BatchStatus,
    Calibration,
    MapProject,
    MapSettings,
    OutlineStyle,
    ProjectStatus,
    UploadedImage,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "BATCH_EXHAUSTED_MESSAGE",
    "PrintableMapsError",
    "ValidationError",
    "InvalidDimensionError",
    "NotFoundError",
    "PreconditionError",
    "ProcessingError",
    "StorageError",
    "ConfigurationError",
    "with_error_handling",
    "DEFAULT_PAPER_SIZE",
    "PAPER_SIZES",
    "PaperSize",
    "get_paper_size",
    "CropArea",
    "GridLayout",
    "calculate_grid_layout",
    "generate_crop_area",
    "AppConfig",
    "BatchJob",
    "BatchStatus",
    "Calibration",
    "MapProject",
    "MapSettings",
    "OutlineStyle",
    "ProjectStatus",
    "UploadedImage",
]
