"""Service implementations for single maps and batch jobs."""

import functools
import math
import pathlib
import threading
import time
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError as SchemaValidationError

from ..document import expected_page_count, plan_document, render_document
from ..processors.serial import run_batch_job
from .exceptions import (
    NotFoundError,
    PreconditionError,
    ProcessingError,
    ValidationError,
    with_error_handling,
)
from .image_utils import load_image, read_image_dimensions
from .layout import calculate_grid_layout
from .models import (
    BatchJob,
    BatchStatus,
    Calibration,
    MapProject,
    MapSettings,
    ProjectStatus,
    UploadedImage,
)
from .observability import LogContext, MetricsCollector, PerformanceMetrics
from .protocols import (
    ArtifactStore,
    BatchJobRepository,
    BatchRunner,
    LoggerProtocol,
    ProjectRepository,
)

SettingsInput = Union[MapSettings, Mapping[str, Any], None]


def parse_settings(payload: SettingsInput) -> MapSettings:
    """Validate a settings payload once, applying defaults for missing keys."""
    if payload is None:
        return MapSettings()
    if isinstance(payload, MapSettings):
        return payload
    try:
        return MapSettings.model_validate(dict(payload))
    except SchemaValidationError as exc:
        raise ValidationError(f"Invalid settings: {exc}") from exc


def _require_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Invalid calibration data: {name} must be a number")
    if not math.isfinite(value):
        raise ValidationError(f"Invalid calibration data: {name} must be finite")
    return float(value)


class MapDocumentBuilder:
    """Pure document builder: project and style in, PDF bytes out."""

    @with_error_handling
    def build(self, project: MapProject, settings: MapSettings) -> bytes:
        layout = calculate_grid_layout(
            project.image_width,
            project.image_height,
            project.scale,
            settings.paper_size.value,
        )
        plan = plan_document(
            layout,
            project.image_width,
            project.image_height,
            project.scale,
            settings.generate_backside_numbers,
        )
        image = load_image(project.image_data)
        if image.size != (project.image_width, project.image_height):
            raise ProcessingError(
                f"Image is {image.width}x{image.height}, expected "
                f"{project.image_width}x{project.image_height}"
            )
        return render_document(plan, image, settings)


class MapProjectService:
    """Lifecycle of single map projects, including document generation."""

    def __init__(
        self,
        projects: ProjectRepository,
        artifacts: ArtifactStore,
        logger: LoggerProtocol,
        document_builder: Optional[MapDocumentBuilder] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._projects = projects
        self._artifacts = artifacts
        self._logger = logger
        self._document_builder = document_builder or MapDocumentBuilder()
        self._metrics_collector = metrics_collector

    def upload(
        self, file_name: str, data: bytes, settings: SettingsInput = None
    ) -> MapProject:
        """Register a new map image; it starts uncalibrated at native scale."""
        width, height = read_image_dimensions(data)
        project = MapProject(
            file_name=file_name,
            image_data=data,
            image_width=width,
            image_height=height,
            settings=parse_settings(settings),
        )
        self._projects.add(project)
        self._logger.info(
            f"Uploaded map {file_name} ({width}x{height}) as project {project.id}"
        )
        return project

    def get(self, project_id: str) -> MapProject:
        return self._projects.get(project_id)

    def list(self) -> List[MapProject]:
        return self._projects.list()

    def calibrate(
        self,
        project_id: str,
        scale: Any,
        offset_x: Any = 0.0,
        offset_y: Any = 0.0,
        rotation: Any = 0.0,
    ) -> MapProject:
        """Confirm the calibration and mark the project ready for generation."""
        values = {
            "scale": _require_number("scale", scale),
            "offset_x": _require_number("offset_x", offset_x),
            "offset_y": _require_number("offset_y", offset_y),
            "rotation": _require_number("rotation", rotation),
        }
        try:
            calibration = Calibration(**values)
        except SchemaValidationError as exc:
            raise ValidationError(f"Invalid calibration data: {exc}") from exc

        project = self._projects.get(project_id)
        project.calibrate(calibration)
        self._projects.save(project)
        self._logger.debug(f"Calibrated project {project_id} at scale {calibration.scale}")
        return project

    def update_settings(self, project_id: str, settings: SettingsInput) -> MapProject:
        parsed = parse_settings(settings)
        project = self._projects.get(project_id)
        project.settings = parsed
        self._projects.save(project)
        return project

    def generate_document(
        self, project_id: str, settings: Optional[MapSettings] = None
    ) -> MapProject:
        """
        Generate the printable document for a calibrated project.

        Args:
            project_id: Project to generate
            settings: Style override; defaults to the project's own settings

        Returns:
            The completed project with its output reference set

        Raises:
            NotFoundError: Unknown project
            PreconditionError: Project is not calibrated
            ProcessingError: Generation failed; the project is back to uploaded
        """
        project = self._projects.get(project_id)
        if project.status is not ProjectStatus.CALIBRATED:
            raise PreconditionError(
                f"Map project {project_id} must be calibrated first "
                f"(status: {project.status.value})"
            )
        settings = settings or project.settings

        log_context = LogContext(
            operation="generate_document", component="map_project_service"
        ).with_metadata(
            project_id=project.id,
            file_name=project.file_name,
            paper_size=settings.paper_size.value,
            scale=project.scale,
        )
        start_time = time.time()

        project.begin_processing()
        self._projects.save(project)
        self._logger.debug("Generating document", log_context)

        try:
            document = self._document_builder.build(project, settings)
            output_ref = self._artifacts.save(f"{project.id}.pdf", document)
        except Exception as exc:
            project.mark_failed()
            self._projects.save(project)
            self._record_metric(start_time, False, error_message=str(exc))
            self._logger.error(
                "Document generation failed", log_context.with_metadata(error=str(exc))
            )
            if isinstance(exc, ProcessingError):
                raise
            raise ProcessingError(
                f"Failed to generate document for project {project.id}: {exc}"
            ) from exc

        pages = expected_page_count(
            calculate_grid_layout(
                project.image_width,
                project.image_height,
                project.scale,
                settings.paper_size.value,
            ),
            settings.generate_backside_numbers,
        )
        project.mark_completed(output_ref)
        self._projects.save(project)
        self._record_metric(start_time, True, pages=pages)
        self._logger.info(
            "Generated document",
            log_context,
            output_ref=output_ref,
            pages=pages,
            processing_time_ms=(time.time() - start_time) * 1000,
        )
        return project

    def load_document(self, project_id: str) -> bytes:
        project = self._projects.get(project_id)
        if project.status is not ProjectStatus.COMPLETED or not project.output_ref:
            raise NotFoundError(f"Document for project {project_id} not found")
        return self._artifacts.load(project.output_ref)

    def delete(self, project_id: str) -> None:
        """Delete a project together with its generated document."""
        project = self._projects.get(project_id)
        if project.status is ProjectStatus.PROCESSING:
            raise PreconditionError(f"Map project {project_id} is being processed")
        if project.output_ref:
            self._artifacts.delete(project.output_ref)
        self._projects.delete(project_id)

    @staticmethod
    def download_name(project: MapProject) -> str:
        return f"{pathlib.PurePath(project.file_name).stem}_printable.pdf"

    def _record_metric(
        self,
        start_time: float,
        success: bool,
        error_message: Optional[str] = None,
        pages: int = 0,
    ) -> None:
        if self._metrics_collector is None:
            return
        self._metrics_collector.record_metric(
            PerformanceMetrics(
                operation="generate_document",
                start_time=start_time,
                end_time=time.time(),
                success=success,
                error_message=error_message,
                pages=pages,
            )
        )


class BatchJobService:
    """Creation, start and bookkeeping of batch jobs."""

    def __init__(
        self,
        jobs: BatchJobRepository,
        projects: ProjectRepository,
        project_service: MapProjectService,
        runner: BatchRunner,
        logger: LoggerProtocol,
    ):
        self._jobs = jobs
        self._projects = projects
        self._project_service = project_service
        self._runner = runner
        self._logger = logger
        self._start_lock = threading.Lock()

    def create_job(
        self,
        images: Sequence[UploadedImage],
        settings: SettingsInput = None,
        name: Optional[str] = None,
    ) -> BatchJob:
        """
        Create a pending job from raw images sharing one style.

        Images without usable dimensions are skipped. The settings are
        snapshotted into the job, so later edits to member projects do not
        change how the job renders.

        Raises:
            ValidationError: If no image is usable
        """
        parsed = parse_settings(settings)
        project_ids: List[str] = []

        for image in images:
            try:
                project = self._project_service.upload(image.file_name, image.data, parsed)
            except ValidationError as exc:
                self._logger.warning(f"Skipping {image.file_name}: {exc}")
                continue
            project_ids.append(project.id)

        if not project_ids:
            raise ValidationError("No valid files could be processed")

        job = BatchJob(
            name=name or f"Batch Job {datetime.now(timezone.utc).isoformat()}",
            project_ids=tuple(project_ids),
            settings=parsed,
        )
        self._jobs.add(job)
        self._logger.info(
            f"Created batch job {job.id} '{job.name}' with {job.total_files} files"
        )
        return job

    def start_job(self, job_id: str) -> BatchJob:
        """
        Move a pending job to running and hand it to the runner.

        Returns as soon as the job is running; progress is observed by
        polling get_job.
        """
        with self._start_lock:
            job = self._jobs.get(job_id)
            if job.status is not BatchStatus.PENDING:
                raise PreconditionError(
                    f"Batch job {job_id} is not in pending status ({job.status.value})"
                )
            job.start()
            self._jobs.save(job)

        self._runner.submit(
            job.id,
            functools.partial(
                run_batch_job,
                job.id,
                self._jobs,
                self._projects,
                self._project_service,
                self._logger,
            ),
        )
        self._logger.info(f"Batch job {job.id} started")
        return job

    def get_job(self, job_id: str) -> BatchJob:
        return self._jobs.get(job_id)

    def list_jobs(self) -> List[BatchJob]:
        return self._jobs.list()

    def delete_job(self, job_id: str, delete_artifacts: bool = False) -> None:
        """Delete a job, optionally with its member projects and documents."""
        job = self._jobs.get(job_id)
        if job.status is BatchStatus.RUNNING:
            raise PreconditionError(f"Batch job {job_id} is running")
        if delete_artifacts:
            for project_id in job.project_ids:
                try:
                    self._project_service.delete(project_id)
                except NotFoundError:
                    continue
        self._jobs.delete(job_id)
        self._runner.forget(job_id)
