from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
import signal
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

import dotenv
import uvloop

from ring_mqtt.bridge import RingMqttBridge
from ring_mqtt.config import load_config
from ring_mqtt.const import MQTT_CLIENT_START_TASK_NAME, RING_MQTT_CONFIG_FILE, RING_MQTT_DEBUG, RING_MQTT_VERSION
from ring_mqtt.correlation import correlation_context, ensure_correlation_id
from ring_mqtt.credentials import TokenStore
from ring_mqtt.exceptions import BrokerUnreachableError, RingMqttError
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.mqtt import CommandRouter, MQTTClient

if TYPE_CHECKING:
    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.structs import RefreshTokenUpdate, RingApiProtocol

logger = get_logger(__name__)

# Suppress verbose MQTT library warnings
mqtt_logger = logging.getLogger("mqtt")
mqtt_logger.setLevel(logging.ERROR)
mqtt_logger.propagate = False

type ProviderFactory = Callable[[str, BridgeConfig], Awaitable[RingApiProtocol]]

_background_tasks: set[asyncio.Task[Any]] = set()


def enable_debug_logging() -> None:
    """Switch every bridge logger and its handlers to DEBUG."""
    for name in list(logging.root.manager.loggerDict):
        if name == "ring_mqtt" or name.startswith("ring_mqtt."):
            bridge_logger = logging.getLogger(name)
            bridge_logger.setLevel(logging.DEBUG)
            for handler in bridge_logger.handlers:
                handler.setLevel(logging.DEBUG)


def load_provider(path: str) -> ProviderFactory:
    """Resolve a ``package.module:factory`` import path.

    Raises:
        RingMqttError: the path is malformed or does not name a callable

    """
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise RingMqttError(f"Invalid provider path '{path}', expected 'module:factory'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise RingMqttError(f"Unable to import provider module '{module_name}': {e}") from e
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise RingMqttError(f"Provider '{path}' is not callable")
    return cast("ProviderFactory", factory)


def _save_token(store: TokenStore, update: RefreshTokenUpdate) -> None:
    task = asyncio.create_task(store.on_token_update(update), name="credentials:save")
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


async def run(config_file: Path | None) -> None:
    """Start the bridge and block until SIGINT/SIGTERM."""
    _ = ensure_correlation_id()
    lp = "main:run:"
    config = load_config(config_file)
    if not config.provider:
        raise RingMqttError("No device provider configured, set 'provider' in the config file or RINGPROVIDER")

    store = TokenStore(config.state_file)
    refresh_token = await store.get_refresh_token(config.ring_token)
    factory = load_provider(config.provider)
    logger.info("%s Connecting to Ring API...", lp)
    api = await factory(refresh_token, config)
    api.on_refresh_token_updated.subscribe(lambda update: _save_token(store, update))

    mqtt_client = MQTTClient(config)
    if not await mqtt_client.connect():
        await api.close()
        raise BrokerUnreachableError(config.host, config.port, mqtt_client.last_error)

    bridge = RingMqttBridge(config, api, mqtt_client)
    mqtt_client.command_router = CommandRouter(config, bridge.registry, bridge.scheduler)
    mqtt_client.on_connect = bridge.on_mqtt_connect

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)
    logger.debug("%s Signal handlers configured for SIGINT & SIGTERM", lp)

    mqtt_client.start_task = asyncio.create_task(mqtt_client.start(), name=MQTT_CLIENT_START_TASK_NAME)
    _ = await stop_event.wait()

    logger.info("%s Shutting down ring-mqtt...", lp)
    await bridge.stop()
    await mqtt_client.stop()
    if mqtt_client.start_task is not None:
        _ = await asyncio.gather(mqtt_client.start_task, return_exceptions=True)


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ring devices to MQTT bridge")
    _ = parser.add_argument(
        "--config",
        help="Path to the YAML/JSON config file",
        default=Path(RING_MQTT_CONFIG_FILE),
        type=Path,
    )
    _ = parser.add_argument("--env", help="Path to the environment file", default=None, type=Path)
    _ = parser.add_argument("-D", "--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args(argv)

    if args.debug:
        enable_debug_logging()
        logger.info("Debug mode enabled via CLI argument")

    if args.env:
        env_path = args.env.expanduser().resolve()
        if not env_path.exists():
            logger.error("Environment file not found", extra={"path": str(env_path)})
        elif dotenv.load_dotenv(env_path, override=True):
            logger.info("Environment variables loaded", extra={"source": str(env_path)})
        else:
            logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})
    return args


def main() -> None:
    """Main entry point for ring-mqtt."""
    with correlation_context():
        logger.info("Starting ring-mqtt", extra={"version": RING_MQTT_VERSION})
        args = parse_cli()
        if RING_MQTT_DEBUG:
            logger.info("Debug logging enabled via configuration")
            enable_debug_logging()

        try:
            uvloop.run(run(args.config))
        except RingMqttError as e:
            logger.error("Fatal startup error: %s", e, extra={"exit_code": e.exit_code})
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
        else:
            logger.info("ring-mqtt stopped gracefully")


if __name__ == "__main__":
    main()
