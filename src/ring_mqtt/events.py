"""Motion and doorbell ding lifecycle for cameras."""

from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Callable, Coroutine
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ring_mqtt.const import LOCAL_TZ
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.structs import Ding, DingKind, DingState

if TYPE_CHECKING:
    from ring_mqtt.structs import ClockProtocol

logger = get_logger(__name__)

type Spawner = Callable[[Coroutine[Any, Any, Any], str], asyncio.Task[Any]]


def iso_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=LOCAL_TZ).isoformat()


class DingTracker:
    """Active/expired state of one ding kind on one camera.

    The first ding of a burst marks the kind active and starts a single
    watcher task; later dings only push the expiry out. The watcher sleeps
    until the latest expiry and then flips the kind back to inactive.
    """

    def __init__(
        self,
        kind: DingKind,
        clock: ClockProtocol,
        on_change: Callable[[], Awaitable[None]],
        spawn: Spawner,
        lp: str = "",
    ) -> None:
        self.kind: DingKind = kind
        self.clock: ClockProtocol = clock
        self.state: DingState = DingState()
        self._on_change = on_change
        self._spawn = spawn
        self._watcher: asyncio.Task[Any] | None = None
        self.lp: str = f"{lp}{kind}:"

    @property
    def active(self) -> bool:
        return self.state.active

    @property
    def watching(self) -> bool:
        return self._watcher is not None and not self._watcher.done()

    def seed(self, created_at: float | None, is_person: bool = False) -> None:
        """Load the last event from history without marking it active."""
        if created_at is None:
            return
        self.state.last_ding = math.floor(created_at)
        self.state.last_ding_time = iso_time(created_at)
        self.state.is_person = is_person

    def attributes(self) -> dict[str, Any]:
        if self.kind is DingKind.MOTION:
            return {
                "lastMotion": self.state.last_ding,
                "lastMotionTime": self.state.last_ding_time,
                "personDetected": self.state.is_person,
            }
        return {
            "lastDing": self.state.last_ding,
            "lastDingTime": self.state.last_ding_time,
        }

    async def process(self, ding: Ding) -> None:
        state = self.state
        state.last_ding = math.floor(ding.now)
        state.last_ding_time = iso_time(ding.now)
        state.ding_duration = ding.expires_in
        expires = state.last_ding + ding.expires_in
        if self.kind is DingKind.MOTION:
            state.is_person = ding.detection_type == "human"

        if state.active:
            logger.debug("%s Refreshing active ding, expiry %s -> %s", self.lp, state.last_ding_expires, max(expires, state.last_ding_expires))
            state.last_ding_expires = max(expires, state.last_ding_expires)
            await self._on_change()
            return

        logger.debug("%s New ding, expires at %s", self.lp, expires)
        state.active = True
        state.last_ding_expires = expires
        await self._on_change()
        self._watcher = self._spawn(self._watch_expiry(), f"{self.lp}expiry")

    async def _watch_expiry(self) -> None:
        # the expiry may move while we sleep, so re-read it every pass
        while (remaining := self.state.last_ding_expires - self.clock.time()) > 0:
            await self.clock.sleep(remaining)
        self.state.active = False
        logger.debug("%s Ding expired", self.lp)
        await self._on_change()
