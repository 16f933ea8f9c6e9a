"""
Acceleration Module

Parallel execution of independent scanner alignment jobs.
"""

from .parallel_executor import PairParallelExecutor

__all__ = [
    "PairParallelExecutor",
]
