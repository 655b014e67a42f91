"""Still image acquisition for cameras.

Tiers, first match wins:

1. snapshots blocked on the camera: fail immediately
2. motion active on a battery camera: record a short live stream to a temp
   file and pull a key frame out of it with ffmpeg
3. motion active on a wired camera: force a fresh capture and fetch it
   directly, skipping the client's snapshot cache
4. otherwise: the camera's regular snapshot

A failure at any tier keeps the previously cached image.
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from ring_mqtt.const import (
    SNAPSHOT_FRAME_SIZE,
    STREAM_ATTEMPTS,
    STREAM_DURATION,
    STREAM_MIN_FILE_SIZE,
    STREAM_POLL_INTERVAL,
    STREAM_RETRY_DELAY,
    STREAM_WAIT_SECONDS,
    UNCACHED_SNAPSHOT_DELAY,
)
from ring_mqtt.exceptions import SnapshotError
from ring_mqtt.instrumentation import timed_async
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.structs import SnapshotState

if TYPE_CHECKING:
    from ring_mqtt.structs import ClockProtocol, RingCameraProtocol

logger = get_logger(__name__)

FFMPEG_TIMEOUT = 30


def file_has_size(path: Path, min_size: int = 1) -> bool:
    try:
        return path.stat().st_size >= min_size
    except OSError:
        return False


def remove_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Failed to remove temp file %s: %s", path, e)


class SnapshotEngine:
    """Acquires and caches still images for one camera."""

    def __init__(
        self,
        camera: RingCameraProtocol,
        clock: ClockProtocol,
        tmp_dir: str | Path,
        ffmpeg_path: str = "ffmpeg",
    ) -> None:
        self.camera: RingCameraProtocol = camera
        self.clock: ClockProtocol = clock
        self.tmp_dir: Path = Path(tmp_dir)
        self.ffmpeg_path: str = ffmpeg_path
        self.state: SnapshotState = SnapshotState()
        self.lp: str = f"snapshot:{camera.id}:"

    @property
    def updating(self) -> bool:
        return self.state.updating

    @timed_async("snapshot_refresh")
    async def refresh(self, motion_active: bool) -> bool | None:
        """Try to replace the cached image.

        Returns:
            True when a new image was stored, False when every tier failed and
            the cached image was kept, None when another refresh is in flight.

        """
        lp = f"{self.lp}refresh:"
        if self.state.updating:
            logger.debug("%s Snapshot update already in progress, skipping", lp)
            return None
        self.state.updating = True
        try:
            image = await self._acquire(motion_active)
        except SnapshotError as e:
            logger.debug("%s %s", lp, e)
            image = None
        except Exception as e:
            logger.warning("%s Snapshot acquisition failed: %s", lp, e)
            image = None
        finally:
            self.state.updating = False

        if not image:
            logger.info("%s Could not retrieve updated snapshot, using previously cached snapshot", lp)
            return False
        self.state.image = image
        self.state.timestamp = round(self.clock.time())
        return True

    async def _acquire(self, motion_active: bool) -> bytes | None:
        if self.camera.snapshots_are_blocked:
            raise SnapshotError("Snapshots are unavailable, check if motion capture is disabled manually or via modes settings")
        if motion_active:
            if self.camera.operating_on_battery:
                logger.debug("%s Motion event on battery powered camera, grabbing snapshot from live stream", self.lp)
                return await self.snapshot_from_stream()
            logger.debug("%s Motion event on line powered camera, forcing a non-cached snapshot update", self.lp)
            return await self.uncached_snapshot()
        return await self.camera.get_snapshot()

    async def uncached_snapshot(self) -> bytes:
        await self.camera.request_snapshot_update()
        await self.clock.sleep(UNCACHED_SNAPSHOT_DELAY)
        return await self.camera.get_uncached_snapshot()

    # -- live stream tier -----------------------------------------------

    async def wait_for_stream(self, avi_file: Path, seconds: float = STREAM_WAIT_SECONDS) -> bool:
        """Poll until the stream file holds real video data, or give up after ``seconds``."""
        for _ in range(round(seconds / STREAM_POLL_INTERVAL)):
            if file_has_size(avi_file, STREAM_MIN_FILE_SIZE):
                return True
            await self.clock.sleep(STREAM_POLL_INTERVAL)
        return False

    async def snapshot_from_stream(self, attempts: int = STREAM_ATTEMPTS) -> bytes | None:
        lp = f"{self.lp}stream:"
        for attempt in range(1, attempts + 1):
            avi_file = self.tmp_dir / f"{self.camera.id}_motion_{uuid.uuid4().hex}.avi"
            output = ["-codec", "copy", "-flush_packets", "1", "-t", str(STREAM_DURATION), str(avi_file)]
            try:
                session = await self.camera.stream_video(output)
            except Exception as e:
                # session failed hard, give the camera a moment before the next attempt
                logger.debug("%s Failed to establish live stream (attempt %d/%d): %s", lp, attempt, attempts, e)
                remove_file(avi_file)
                if attempt < attempts:
                    await self.clock.sleep(STREAM_RETRY_DELAY)
                continue

            session.on_call_ended.subscribe(lambda _ended, f=avi_file: remove_file(f))
            try:
                if await self.wait_for_stream(avi_file):
                    logger.debug("%s Established live stream, grabbing key frame", lp)
                    return await self.extract_key_frame(avi_file)
                logger.debug("%s Live stream established but no stream received (attempt %d/%d)", lp, attempt, attempts)
            finally:
                session.stop()
                remove_file(avi_file)

        logger.info("%s Failed to establish live stream after %d attempts", lp, attempts)
        return None

    async def extract_key_frame(self, avi_file: Path) -> bytes | None:
        """Pull the first key frame out of ``avi_file`` as a JPEG."""
        lp = f"{self.lp}extract_key_frame:"
        jpg_file = avi_file.with_suffix(".jpg")
        ffmpeg_cmd = [
            self.ffmpeg_path,
            "-i",
            str(avi_file),
            "-s",
            SNAPSHOT_FRAME_SIZE,
            "-vf",
            r"select='eq(pict_type\,I)'",
            "-vframes",
            "1",
            "-q:v",
            "2",
            str(jpg_file),
        ]
        try:
            process = await asyncio.create_subprocess_exec(
                *ffmpeg_cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.warning("%s Unable to run ffmpeg (%s): %s", lp, self.ffmpeg_path, e)
            return None

        try:
            try:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=FFMPEG_TIMEOUT)
            except TimeoutError:
                process.kill()
                _ = await process.wait()
                logger.warning("%s ffmpeg timed out extracting key frame", lp)
                return None
            if process.returncode != 0:
                logger.warning("%s ffmpeg failed: %s", lp, stderr.decode(errors="replace").strip())
                return None
            if not file_has_size(jpg_file):
                return None
            return await asyncio.to_thread(jpg_file.read_bytes)
        finally:
            remove_file(jpg_file)
