"""Periodic re-send of discovery, state and availability.

Home Assistant drops entities it has not seen discovery for after a restart,
so every handler is republished a fixed number of times after the broker
connection comes up and again whenever Home Assistant announces itself
online.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ring_mqtt.const import REPUBLISH_COUNT, REPUBLISH_DELAY
from ring_mqtt.correlation import correlation_context
from ring_mqtt.logging_abstraction import get_logger

if TYPE_CHECKING:
    from ring_mqtt.structs import ClockProtocol

logger = get_logger(__name__)


class RepublishScheduler:
    """Runs ``count`` republish passes ``delay`` seconds apart.

    ``restart`` zeroes the remaining count so an in-flight cycle stops after
    its current pass, then starts a fresh cycle. Passes are serialized by a
    lock, so the fresh cycle's first pass waits for a pass that is still
    running, and a superseded cycle never touches the new cycle's counters.
    """

    lp: str = "republish:"

    def __init__(
        self,
        clock: ClockProtocol,
        publish_pass: Callable[[], Awaitable[None]],
        is_connected: Callable[[], bool],
        count: int = REPUBLISH_COUNT,
        delay: float = REPUBLISH_DELAY,
    ) -> None:
        self.clock: ClockProtocol = clock
        self.publish_pass = publish_pass
        self.is_connected = is_connected
        self.count: int = count
        self.delay: float = delay
        self.remaining: int = 0
        self.passes_run: int = 0
        self._generation: int = 0
        self._pass_lock: asyncio.Lock = asyncio.Lock()
        self._task: asyncio.Task[Any] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def restart(self, initial_delay: float = 0) -> asyncio.Task[Any]:
        lp = f"{self.lp}restart:"
        if self.remaining > 0:
            logger.info("%s Resetting republish cycle with %d pass(es) remaining", lp, self.remaining)
        self.remaining = 0
        self._generation += 1
        self._task = asyncio.create_task(self._run(self._generation, initial_delay), name=f"{self.lp}cycle")
        # a superseded cycle may still be finishing its pass; keep it reachable for stop()
        self._tasks.add(self._task)
        self._task.add_done_callback(self._tasks.discard)
        return self._task

    async def _run(self, generation: int, initial_delay: float) -> None:
        lp = f"{self.lp}cycle:"
        if initial_delay > 0:
            await self.clock.sleep(initial_delay)
        if generation != self._generation:
            return
        self.remaining = self.count
        logger.debug("%s Starting %d republish passes every %ss", lp, self.count, self.delay)
        while self.remaining > 0 and generation == self._generation:
            if not self.is_connected():
                logger.debug("%s Broker not connected, abandoning republish cycle", lp)
                self.remaining = 0
                return
            async with self._pass_lock:
                if generation != self._generation:
                    return
                with correlation_context():
                    try:
                        await self.publish_pass()
                    except Exception:
                        logger.exception("%s Republish pass failed", lp)
                self.passes_run += 1
            if generation != self._generation:
                logger.debug("%s Cycle superseded by a restart", lp)
                return
            self.remaining -= 1
            if self.remaining > 0:
                await self.clock.sleep(self.delay)

    async def stop(self) -> None:
        self._generation += 1
        self.remaining = 0
        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            _ = task.cancel()
        if tasks:
            _ = await asyncio.gather(*tasks, return_exceptions=True)
