"""Serial batch loop - generates member documents one by one, in order."""

import time
from typing import TYPE_CHECKING

from ..core.error_handling import BatchOperationContextManager
from ..core.exceptions import PreconditionError, PrintableMapsError
from ..core.models import BatchJob, BatchStatus, ProjectStatus
from ..core.observability import LogContext
from ..core.protocols import BatchJobRepository, LoggerProtocol, ProjectRepository
from .common import log_batch_progress, log_final_statistics, log_job_configuration

if TYPE_CHECKING:
    from ..core.services import MapProjectService


def process_member(
    project_id: str,
    job: BatchJob,
    projects: ProjectRepository,
    project_service: "MapProjectService",
) -> None:
    """
    Run one member through calibrated -> processing -> completed.

    A member that is not yet calibrated has its current calibration
    confirmed first. Raises any PrintableMapsError from the member.
    """
    project = projects.get(project_id)
    if project.status is not ProjectStatus.CALIBRATED:
        calibration = project.calibration
        project_service.calibrate(
            project_id,
            calibration.scale,
            calibration.offset_x,
            calibration.offset_y,
            calibration.rotation,
        )
    project_service.generate_document(project_id, settings=job.settings)


def run_batch_job(
    job_id: str,
    jobs: BatchJobRepository,
    projects: ProjectRepository,
    project_service: "MapProjectService",
    logger: LoggerProtocol,
) -> BatchJob:
    """
    Process every member of a running batch job, strictly in list order.

    A member's failure is counted and the loop carries on. The job is saved
    after every member so pollers see progress as it happens. Any other
    error inside the loop fails the whole job with that message.

    Args:
        job_id: A job already moved to running
        jobs: Batch job repository
        projects: Map project repository
        project_service: Service generating single documents
        logger: Logger for the job

    Returns:
        The job in its terminal state
    """
    job = jobs.get(job_id)
    if job.status is not BatchStatus.RUNNING:
        raise PreconditionError(f"Batch job {job_id} is not running")

    log_job_configuration(job)
    log_context = LogContext.for_batch(job.id, job.name)
    start_time = time.time()

    try:
        with BatchOperationContextManager(operation_name=f"Batch job {job.name}") as batch_manager:
            for project_id in job.project_ids:
                item_start = time.time()
                try:
                    process_member(project_id, job, projects, project_service)
                except PrintableMapsError as exc:
                    job.record_failure()
                    batch_manager.add_error(str(exc), item_identifier=project_id)
                    logger.warning(
                        "Batch member failed",
                        log_context.with_metadata(project_id=project_id, error=str(exc)),
                    )
                else:
                    job.record_success()
                jobs.save(job)
                log_batch_progress(job, time.time() - item_start)
        job.finish()
    except Exception as exc:
        if job.status is not BatchStatus.RUNNING:
            raise
        logger.error(
            "Batch job processing failed", log_context.with_metadata(error=str(exc))
        )
        job.abort(str(exc))

    jobs.save(job)
    log_final_statistics(job, time.time() - start_time)
    return job
