"""Collection of per-file results into an UploadSummary."""

import logging
import queue
from typing import Iterable, List

from .errors import AggregationError
from .models import UploadResult, UploadSummary

logger = logging.getLogger(__name__)


def drain_queue(results_queue: "queue.Queue[UploadResult]") -> List[UploadResult]:
    """Remove and return every item currently in the queue, in FIFO order."""
    drained = []
    while True:
        try:
            drained.append(results_queue.get_nowait())
        except queue.Empty:
            return drained


def aggregate_results(results: Iterable[UploadResult], total_files: int) -> UploadSummary:
    """
    Build a summary from per-file results.

    Args:
        results: Results in emission order
        total_files: Number of files that were scheduled

    Returns:
        UploadSummary with counts, all results and the first error

    Raises:
        AggregationError: If the number of results differs from total_files
    """
    summary = UploadSummary(total_files=total_files)

    for result in results:
        summary.results.append(result)
        if result.success:
            summary.success_count += 1
            if result.skipped:
                summary.skipped_count += 1
        else:
            summary.error_count += 1
            if summary.first_error is None and result.error is not None:
                summary.first_error = result.error

    if len(summary.results) != total_files:
        raise AggregationError(total_files, len(summary.results))

    logger.info(
        f"Processed {summary.total_files} files: {summary.uploaded_count} uploaded, "
        f"{summary.skipped_count} skipped, {summary.error_count} failed"
    )
    return summary
