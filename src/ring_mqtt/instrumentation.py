"""
Timing decorator for slow bridge operations.

Snapshot acquisition and publish passes are wrapped with ``timed_async`` so a
slow camera or broker shows up in the logs with its duration.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Coroutine
from typing import Any, ParamSpec, TypeVar

__all__ = ["timed_async"]

P = ParamSpec("P")
T = TypeVar("T")


def timed_async(
    operation_name: str | None = None,
) -> Callable[[Callable[P, Coroutine[Any, Any, T]]], Callable[P, Coroutine[Any, Any, T]]]:
    """
    Log the duration of an async call, at WARNING above RING_MQTT_PERF_THRESHOLD_MS.

    Example:
        @timed_async("snapshot_refresh")
        async def refresh(self): ...
    """

    def decorator(func: Callable[P, Coroutine[Any, Any, T]]) -> Callable[P, Coroutine[Any, Any, T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            from ring_mqtt.const import RING_MQTT_PERF_THRESHOLD_MS, RING_MQTT_PERF_TRACKING
            from ring_mqtt.logging_abstraction import get_logger

            if not RING_MQTT_PERF_TRACKING:
                return await func(*args, **kwargs)

            op_name = operation_name or func.__name__
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger = get_logger(__name__)
                timing = {"operation": op_name, "duration_ms": round(elapsed_ms, 2)}
                if elapsed_ms > RING_MQTT_PERF_THRESHOLD_MS:
                    logger.warning(
                        "[%s] completed in %.1fms (threshold: %dms)",
                        op_name,
                        elapsed_ms,
                        RING_MQTT_PERF_THRESHOLD_MS,
                        extra=timing,
                    )
                else:
                    logger.debug("[%s] completed in %.1fms", op_name, elapsed_ms, extra=timing)

        return wrapper

    return decorator
