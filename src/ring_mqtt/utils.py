from __future__ import annotations

import asyncio
import os
import signal
import time

from ring_mqtt.logging_abstraction import get_logger

logger = get_logger(__name__)

ON_PAYLOADS = ("on",)
OFF_PAYLOADS = ("off",)


class Clock:
    """Wall clock backed by ``time.time`` and ``asyncio.sleep``."""

    def time(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def decode_payload(payload: str | bytes | bytearray) -> str:
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode(errors="replace").strip()
    return payload.strip()


def parse_on_off(payload: str | bytes) -> bool | None:
    """Map a case-insensitive ON/OFF payload to a bool, ``None`` for anything else."""
    norm_pl = decode_payload(payload).casefold()
    if norm_pl in ON_PAYLOADS:
        return True
    if norm_pl in OFF_PAYLOADS:
        return False
    return None


def parse_percentage(payload: str | bytes) -> float | None:
    """Parse a 0-100 level command.

    Returns:
        The value as a number in 0-100, or ``None`` when the payload is not
        numeric or out of range.

    """
    norm_pl = decode_payload(payload)
    try:
        value = float(norm_pl)
    except ValueError:
        return None
    if value != value or not 0 <= value <= 100:
        return None
    return value


def percentage_to_level(value: float) -> float:
    """0-100 -> 0.0-1.0 as the Ring API expects for level and volume."""
    return round(value / 100, 4)


def level_to_percentage(level: float | None) -> int | None:
    if level is None:
        return None
    return round(level * 100)


def send_signal(signal_num: int) -> None:
    try:
        logger.debug("Sending signal %s to process %s", signal_num, os.getpid())
        os.kill(os.getpid(), signal_num)
    except OSError:
        logger.exception("Failed to send signal %s to process", signal_num)
        raise


def send_sigterm() -> None:
    """Request termination of the bridge process."""
    send_signal(signal.SIGTERM)
