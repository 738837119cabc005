"""Batch runners and the serial batch loop."""

from .background import BackgroundBatchRunner, InlineBatchRunner
from .serial import process_member, run_batch_job

__all__ = [
    "BackgroundBatchRunner",
    "InlineBatchRunner",
    "process_member",
    "run_batch_job",
]
