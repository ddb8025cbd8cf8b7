"""Concurrency executors for provider fan-out."""

from .executors import ConcurrencyExecutor, PoolExecutor, SequentialExecutor, create_executor

__all__ = ["ConcurrencyExecutor", "PoolExecutor", "SequentialExecutor", "create_executor"]
