"""Concurrent pipeline engine.

Exports:
- Pipeline: reader -> worker pool -> aggregator for one processor
- run_pipeline: file-level driver built on Pipeline
- PoolConfig: pool and channel sizing
"""

from rowpool.engine.aggregator import ResultAggregator
from rowpool.engine.channel import BoundedChannel
from rowpool.engine.config import PoolConfig
from rowpool.engine.pipeline import Pipeline
from rowpool.engine.pool import WorkerPool
from rowpool.engine.runner import run_pipeline

__all__ = [
    "BoundedChannel",
    "Pipeline",
    "PoolConfig",
    "ResultAggregator",
    "WorkerPool",
    "run_pipeline",
]
