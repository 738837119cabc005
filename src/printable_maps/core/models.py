"""Shared data models for printable maps."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import BATCH_EXHAUSTED_MESSAGE, PreconditionError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class GridStyle(str, Enum):
    SQUARE = "square"
    HEXAGON = "hexagon"
    ISOMETRIC = "isometric"
    UNIVERSAL = "universal"


class UnitOfMeasurement(str, Enum):
    IMPERIAL = "imperial"
    METRIC = "metric"


class PaperSizeName(str, Enum):
    A4 = "a4"
    A3 = "a3"
    A2 = "a2"
    A1 = "a1"
    A0 = "a0"
    LETTER = "letter"
    LEGAL = "legal"
    TABLOID = "tabloid"


class OutlineStyle(str, Enum):
    NONE = "none"
    DASH = "dash"
    SOLID = "solid"
    DOTTED = "dotted"


class MapSettings(BaseModel):
    """Style configuration applied when generating a printable document.

    Accepts both snake_case names and the camelCase keys used by JSON
    payloads (``paperSize``, ``generateBacksideNumbers``...). Instances are
    immutable; use ``model_copy(update=...)`` to derive a variant.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    grid_style: GridStyle = GridStyle.SQUARE
    unit_of_measurement: UnitOfMeasurement = UnitOfMeasurement.IMPERIAL
    paper_size: PaperSizeName = PaperSizeName.A4
    grid_overlay: bool = False
    background_color: str = "#ffffff"
    average_background_color: bool = False
    grid_marker_color: str = "#ffffff"
    guide_color: str = "#ffffff"
    generate_backside_numbers: bool = True
    outline_style: OutlineStyle = OutlineStyle.DASH
    outline_thickness: int = Field(default=3, ge=1, le=10)
    outline_color: str = "#ffffff"

    @field_validator(
        "background_color", "grid_marker_color", "guide_color", "outline_color"
    )
    @classmethod
    def _check_color(cls, value: str) -> str:
        # Raises ValueError for anything Pillow cannot parse
        ImageColor.getrgb(value)
        return value


class Calibration(BaseModel):
    """Scale and display-only placement chosen during calibration."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    scale: float = Field(default=1.0, gt=0)
    offset_x: float = 0.0
    offset_y: float = 0.0
    rotation: float = 0.0


class ProjectStatus(str, Enum):
    UPLOADED = "uploaded"
    CALIBRATED = "calibrated"
    PROCESSING = "processing"
    COMPLETED = "completed"


PROJECT_TRANSITIONS: Dict[ProjectStatus, FrozenSet[ProjectStatus]] = {
    ProjectStatus.UPLOADED: frozenset({ProjectStatus.CALIBRATED}),
    ProjectStatus.CALIBRATED: frozenset(
        {ProjectStatus.CALIBRATED, ProjectStatus.PROCESSING}
    ),
    ProjectStatus.PROCESSING: frozenset(
        {ProjectStatus.COMPLETED, ProjectStatus.UPLOADED}
    ),
    ProjectStatus.COMPLETED: frozenset({ProjectStatus.CALIBRATED}),
}


class MapProject(BaseModel):
    """One calibrated map pending or having undergone document generation."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=_new_id, frozen=True)
    file_name: str
    image_data: bytes = Field(repr=False)
    image_width: int = Field(gt=0)
    image_height: int = Field(gt=0)
    settings: MapSettings = Field(default_factory=MapSettings)
    calibration: Calibration = Field(default_factory=Calibration)
    status: ProjectStatus = ProjectStatus.UPLOADED
    output_ref: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def scale(self) -> float:
        return self.calibration.scale

    def transition_to(self, status: ProjectStatus) -> None:
        """Move to ``status`` or raise PreconditionError if not allowed."""
        if status not in PROJECT_TRANSITIONS[self.status]:
            raise PreconditionError(
                f"Map project {self.id} cannot move from "
                f"{self.status.value} to {status.value}"
            )
        self.status = status

    def calibrate(self, calibration: Calibration) -> None:
        self.transition_to(ProjectStatus.CALIBRATED)
        self.calibration = calibration
        self.output_ref = None

    def begin_processing(self) -> None:
        self.transition_to(ProjectStatus.PROCESSING)

    def mark_completed(self, output_ref: str) -> None:
        self.transition_to(ProjectStatus.COMPLETED)
        self.output_ref = output_ref

    def mark_failed(self) -> None:
        # Back to uploaded: the caller must recalibrate before retrying
        self.transition_to(ProjectStatus.UPLOADED)
        self.output_ref = None


class BatchStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


BATCH_TRANSITIONS: Dict[BatchStatus, FrozenSet[BatchStatus]] = {
    BatchStatus.PENDING: frozenset({BatchStatus.RUNNING}),
    BatchStatus.RUNNING: frozenset({BatchStatus.COMPLETED, BatchStatus.FAILED}),
    BatchStatus.COMPLETED: frozenset(),
    BatchStatus.FAILED: frozenset(),
}


class BatchJob(BaseModel):
    """A named, ordered collection of map projects sharing one style."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=_new_id, frozen=True)
    name: str
    project_ids: Tuple[str, ...] = Field(min_length=1, frozen=True)
    settings: MapSettings = Field(default_factory=MapSettings, frozen=True)
    processed_files: int = Field(default=0, ge=0)
    failed_files: int = Field(default=0, ge=0)
    status: BatchStatus = BatchStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_files(self) -> int:
        return len(self.project_ids)

    @property
    def is_terminal(self) -> bool:
        return self.status in (BatchStatus.COMPLETED, BatchStatus.FAILED)

    @property
    def remaining_files(self) -> int:
        return self.total_files - self.processed_files - self.failed_files

    def transition_to(self, status: BatchStatus) -> None:
        if status not in BATCH_TRANSITIONS[self.status]:
            raise PreconditionError(
                f"Batch job {self.id} cannot move from "
                f"{self.status.value} to {status.value}"
            )
        self.status = status

    def start(self) -> None:
        self.transition_to(BatchStatus.RUNNING)

    def _count_one(self) -> None:
        if self.status is not BatchStatus.RUNNING:
            raise PreconditionError(f"Batch job {self.id} is not running")
        if self.remaining_files <= 0:
            raise PreconditionError(
                f"Batch job {self.id} has already counted all {self.total_files} files"
            )

    def record_success(self) -> None:
        self._count_one()
        self.processed_files += 1

    def record_failure(self) -> None:
        self._count_one()
        self.failed_files += 1

    def finish(self) -> None:
        """Close a fully counted run as completed, or failed if nothing succeeded."""
        if self.remaining_files:
            raise PreconditionError(
                f"Batch job {self.id} still has {self.remaining_files} uncounted files"
            )
        self.transition_to(
            BatchStatus.COMPLETED if self.processed_files > 0 else BatchStatus.FAILED
        )
        self.completed_at = _utcnow()
        if self.failed_files == self.total_files:
            self.error_message = BATCH_EXHAUSTED_MESSAGE

    def abort(self, message: str) -> None:
        """Fail the whole run; members not yet counted are counted as failed."""
        self.transition_to(BatchStatus.FAILED)
        self.failed_files += self.remaining_files
        self.completed_at = _utcnow()
        self.error_message = message


class UploadedImage(BaseModel):
    """A raw image handed to batch creation."""

    file_name: str
    data: bytes = Field(repr=False)


class AppConfig(BaseModel):
    """Configuration for a printable maps host process."""

    output_dir: str = "output"
    artifact_backend: str = Field(default="local", pattern="^(local|s3)$")
    s3_bucket: Optional[str] = None
    s3_prefix: str = ""
    debug: bool = False
    default_settings: MapSettings = Field(default_factory=MapSettings)
