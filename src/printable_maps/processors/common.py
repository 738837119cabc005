"""Logging helpers shared by the batch runners."""

from ..core.logging_config import get_logger
from ..core.models import BatchJob


def log_job_configuration(job: BatchJob) -> None:
    """Log the batch job and its shared style configuration."""
    logger = get_logger("printable-maps.batch")
    settings = job.settings
    logger.info("=" * 80)
    logger.info(f"BATCH JOB {job.name}")
    logger.info("=" * 80)
    logger.info(f"  Job id:          {job.id}")
    logger.info(f"  Files:           {job.total_files}")
    logger.info(f"  Paper size:      {settings.paper_size.value}")
    logger.info(
        f"  Outline:         {settings.outline_style.value} "
        f"{settings.outline_thickness}pt {settings.outline_color}"
    )
    logger.info(
        f"  Backside numbers: {'Enabled' if settings.generate_backside_numbers else 'Disabled'}"
    )
    logger.info("=" * 80)


def log_batch_progress(job: BatchJob, item_time: float) -> None:
    """Log cumulative progress after one member has been counted."""
    logger = get_logger("printable-maps.batch")
    done = job.processed_files + job.failed_files
    progress = (done / job.total_files) * 100
    logger.info(
        f"Progress: {done}/{job.total_files} ({progress:.1f}%) - "
        f"Last item: {item_time:.2f}s - "
        f"Success: {job.processed_files}, Errors: {job.failed_files}"
    )


def log_final_statistics(job: BatchJob, total_time: float) -> None:
    """Log final batch statistics."""
    logger = get_logger("printable-maps.batch")
    rate = job.total_files / total_time if total_time > 0 else 0

    logger.info("=" * 80)
    logger.info(f"BATCH JOB {job.status.value.upper()}")
    logger.info("=" * 80)
    logger.info(f"Total execution time: {total_time:.1f}s")
    logger.info(f"Overall processing rate: {rate:.2f} maps/sec")
    logger.info(f"Successfully processed: {job.processed_files}")
    logger.info(f"Errors encountered: {job.failed_files}")
    if job.error_message:
        logger.info(f"Error message: {job.error_message}")
    logger.info("=" * 80)
