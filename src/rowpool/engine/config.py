"""Pool configuration for the worker pipeline."""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_POOL_SIZE = 25
DEFAULT_QUEUE_CAPACITY = 100
DEFAULT_FLUSH_INTERVAL = 100


class PoolConfig(BaseModel):
    """Worker pool and channel sizing.

    Attributes:
        pool_size: Number of worker threads (must be >= 1)
        queue_capacity: Capacity of both the input and result channels
        flush_interval: Flush both sinks every N results handled
    """

    model_config = {"extra": "forbid", "frozen": True}

    pool_size: int = Field(DEFAULT_POOL_SIZE, ge=1, description="Number of worker threads")
    queue_capacity: int = Field(DEFAULT_QUEUE_CAPACITY, ge=1, description="Bounded channel capacity")
    flush_interval: int = Field(DEFAULT_FLUSH_INTERVAL, ge=1, description="Results between sink flushes")
