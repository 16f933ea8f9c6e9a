"""
Parallel execution infrastructure for scanner alignment.

Provides PairParallelExecutor for distributing independent alignment jobs
(one candidate scanner against a snapshot of registered scanners) across
multiple CPU cores using multiprocessing.
"""

from __future__ import annotations

import logging
import time
from multiprocessing import Pool, cpu_count
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def _run_alignment_job(args: Tuple[int, Any, Callable, Dict[str, Any]]) -> Tuple[int, Any, Optional[str]]:
    """
    Run one alignment job inside a pool process.

    A job is typically a candidate scanner paired with the registered
    scanners it should be tried against. Failures are returned as text with
    the job's position so the coordinating process can report every failed
    candidate after the pass, not only the first.

    Returns:
        (job_index, result or None, error text or None)
    """
    job_index, job, align_fn, align_kwargs = args
    try:
        return job_index, align_fn(job, **align_kwargs), None
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        logger.error(f"Alignment job {job_index} failed in worker: {error_msg}")
        return job_index, None, error_msg


class PairParallelExecutor:
    """
    Parallel executor for alignment jobs.

    Manages the worker pool, distributes jobs to workers and collects results
    in input order.

    Example:
        executor = PairParallelExecutor(n_workers=4)
        results = executor.map_jobs(
            jobs=[(candidate, references), ...],
            worker_fn=align_candidate,
            worker_kwargs={'overlap_threshold': 12}
        )
    """

    def __init__(self, n_workers: Optional[int] = None):
        """
        Initialize parallel executor.

        Args:
            n_workers: Number of worker processes. If None, uses cpu_count - 1
                to leave one core for coordination. Minimum is 1.
        """
        if n_workers is None:
            n_workers = max(1, cpu_count() - 1)
        else:
            n_workers = max(1, int(n_workers))

        self.n_workers = n_workers

        logger.info(
            f"Initialized PairParallelExecutor with {self.n_workers} workers "
            f"(total CPUs: {cpu_count()})"
        )

    def map_jobs(
        self,
        jobs: List[Any],
        worker_fn: Callable,
        worker_kwargs: Dict[str, Any],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> List[Any]:
        """
        Map worker function over jobs in parallel.

        Args:
            jobs: List of jobs to process
            worker_fn: Function to apply to each job. Must be picklable and
                have signature: worker_fn(job, **worker_kwargs) -> result
            worker_kwargs: Fixed keyword arguments passed to each worker call
            progress_callback: Optional callback called after each job
                completes. Signature: callback(completed_count, total_count)

        Returns:
            List of results in same order as input jobs

        Raises:
            RuntimeError: If any job fails
        """
        n_jobs = len(jobs)

        if n_jobs == 0:
            logger.warning("No alignment jobs to process")
            return []

        logger.debug(f"Processing {n_jobs} alignment jobs with {self.n_workers} workers")
        start_time = time.time()

        # Sequential processing avoids pool overhead
        if self.n_workers == 1 or n_jobs == 1:
            results = []
            for i, job in enumerate(jobs):
                try:
                    results.append(worker_fn(job, **worker_kwargs))
                except Exception as e:
                    logger.error(f"Error processing job {i}: {e}", exc_info=True)
                    raise RuntimeError(f"Alignment job failed: {e}") from e
                if progress_callback:
                    progress_callback(i + 1, n_jobs)
            logger.debug(f"Sequential processing complete: {n_jobs} jobs in {time.time() - start_time:.2f}s")
            return results

        try:
            results = self._parallel_map(jobs, worker_fn, worker_kwargs, progress_callback)
        except Exception as e:
            logger.error(f"Parallel processing failed: {e}", exc_info=True)
            raise RuntimeError(f"Parallel alignment failed: {e}") from e

        logger.debug(f"Parallel processing complete: {n_jobs} jobs in {time.time() - start_time:.2f}s")
        return results

    def _parallel_map(
        self,
        jobs: List[Any],
        worker_fn: Callable,
        worker_kwargs: Dict[str, Any],
        progress_callback: Optional[Callable],
    ) -> List[Any]:
        """
        Execute parallel mapping using multiprocessing.Pool.

        Uses imap_unordered for responsiveness, then reorders results to
        match input job order.
        """
        n_jobs = len(jobs)
        worker_args = [(i, job, worker_fn, worker_kwargs) for i, job in enumerate(jobs)]

        results_dict = {}
        errors = []
        with Pool(processes=min(self.n_workers, n_jobs)) as pool:
            for completed, (idx, result, error) in enumerate(
                pool.imap_unordered(_run_alignment_job, worker_args), start=1
            ):
                if error:
                    errors.append((idx, error))
                    logger.error(f"Job {idx} failed: {error}")
                else:
                    results_dict[idx] = result

                if progress_callback:
                    progress_callback(completed, n_jobs)

        if errors:
            error_msg = f"{len(errors)} alignment jobs failed out of {n_jobs}"
            logger.error(error_msg)
            for idx, error in errors[:5]:
                logger.error(f"  Job {idx}: {error}")
            if len(errors) > 5:
                logger.error(f"  ... and {len(errors) - 5} more errors")
            raise RuntimeError(error_msg)

        return [results_dict[i] for i in range(n_jobs)]
