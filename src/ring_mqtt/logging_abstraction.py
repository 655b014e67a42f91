"""Logging layer for the Ring MQTT bridge.

Every module logs through a ``RingLogger`` obtained from ``get_logger``. Output
goes to a human-readable stream, a JSON lines file, or both, and each record
carries the correlation id of the operation that produced it.

Destinations are ``stdout``, ``stderr`` or a file path. A file that cannot be
opened falls back to stdout for human output and is skipped for JSON.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "RingLogger",
    "get_logger",
]

# which outputs each RING_MQTT_LOG_FORMAT value enables: (json, human)
FORMAT_OUTPUTS: dict[str, tuple[bool, bool]] = {
    "json": (True, False),
    "human": (False, True),
    "both": (True, True),
}

type LogExtra = Mapping[str, object] | None


def _context_of(record: logging.LogRecord) -> dict[str, object]:
    extra_data = getattr(record, "extra_data", None)
    if isinstance(extra_data, Mapping) and extra_data:
        return dict(cast("Mapping[str, object]", extra_data))
    return {}


def _current_correlation_id() -> str | None:
    from ring_mqtt.correlation import get_correlation_id

    return get_correlation_id()


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
            "msg": record.getMessage(),
        }
        if (corr_id := _current_correlation_id()) is not None:
            entry["correlation_id"] = corr_id
        if context := _context_of(record):
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Single-line text records with a short correlation id and trailing context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)-7s %(corr)s %(name)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        corr_id = _current_correlation_id()
        record.corr = f"[{corr_id[:8]}]" if corr_id else "[--------]"
        line = super().format(record)
        context = _context_of(record)
        if not context:
            return line
        return line + " | " + " ".join(f"{k}={v}" for k, v in context.items())


def _open_handler(destination: str, fallback_to_stdout: bool) -> logging.Handler | None:
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    path = Path(destination)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, mode="a")
    except OSError as e:
        # the logging layer itself is unavailable here
        print(f"Warning: cannot open log file {destination}: {e}", file=sys.stderr)
    return logging.StreamHandler(sys.stdout) if fallback_to_stdout else None


class RingLogger:
    """Thin wrapper over ``logging.Logger`` accepting a structured ``extra`` mapping."""

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stdout",
    ) -> None:
        from ring_mqtt.const import RING_MQTT_DEBUG

        self.name: str = name
        self.log_format: str = log_format
        self.logger: logging.Logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if RING_MQTT_DEBUG else logging.INFO)
        # get_logger is called once per module; reuse handlers on repeat calls
        if not self.logger.handlers:
            self._attach_handlers(json_file, human_output)

    def _attach_handlers(self, json_file: str | Path | None, human_output: str | None) -> None:
        want_json, want_human = FORMAT_OUTPUTS.get(self.log_format, (False, True))
        outputs: list[tuple[logging.Handler | None, logging.Formatter]] = []
        if want_json and json_file:
            outputs.append((_open_handler(str(json_file), fallback_to_stdout=False), JSONFormatter()))
        if want_human:
            outputs.append((_open_handler(human_output or "stdout", fallback_to_stdout=True), HumanReadableFormatter()))
        for handler, formatter in outputs:
            if handler is None:
                continue
            handler.setFormatter(formatter)
            handler.setLevel(self.logger.level)
            self.logger.addHandler(handler)

    @staticmethod
    def _extra(extra: LogExtra) -> dict[str, object] | None:
        return {"extra_data": dict(extra)} if extra else None

    def debug(self, msg: str, *args: object, extra: LogExtra = None) -> None:
        self.logger.debug(msg, *args, extra=self._extra(extra))

    def info(self, msg: str, *args: object, extra: LogExtra = None) -> None:
        self.logger.info(msg, *args, extra=self._extra(extra))

    def warning(self, msg: str, *args: object, extra: LogExtra = None) -> None:
        self.logger.warning(msg, *args, extra=self._extra(extra))

    def error(self, msg: str, *args: object, extra: LogExtra = None) -> None:
        self.logger.error(msg, *args, extra=self._extra(extra))

    def exception(self, msg: str, *args: object, extra: LogExtra = None) -> None:
        """Log at ERROR with the active traceback attached."""
        self.logger.exception(msg, *args, extra=self._extra(extra))

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> RingLogger:
    """Return a ``RingLogger`` configured from the RING_MQTT_LOG_* environment settings."""
    from ring_mqtt.const import (
        RING_MQTT_LOG_FORMAT,
        RING_MQTT_LOG_HUMAN_OUTPUT,
        RING_MQTT_LOG_JSON_FILE,
    )

    return RingLogger(
        name,
        log_format=log_format or RING_MQTT_LOG_FORMAT,
        json_file=json_file or RING_MQTT_LOG_JSON_FILE,
        human_output=human_output or RING_MQTT_LOG_HUMAN_OUTPUT,
    )
