"""Persistent refresh token storage.

Ring refresh tokens rotate; the newest one must survive restarts or the
bridge loses access to the account.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, cast

from pydantic import BaseModel, ValidationError

from ring_mqtt.exceptions import RingCredentialError
from ring_mqtt.logging_abstraction import get_logger

if TYPE_CHECKING:
    from ring_mqtt.structs import RefreshTokenUpdate

logger = get_logger(__name__)


class RingState(BaseModel):
    ring_token: str | None = None


class TokenStore:
    """JSON state file holding the current refresh token."""

    lp: str = "credentials:"

    def __init__(self, state_file: str | Path) -> None:
        self.state_file: Path = Path(state_file)

    async def read(self) -> RingState | None:
        lp = f"{self.lp}read:"

        def _read_json() -> RingState | None:
            with self.state_file.open("r", encoding="utf-8") as f:
                json_result: object = cast("object", json.load(f))
            if not isinstance(json_result, dict):
                return None
            return RingState.model_validate(json_result)

        try:
            state = await asyncio.to_thread(_read_json)
        except FileNotFoundError:
            logger.debug("%s State file not found: %s", lp, self.state_file)
            return None
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("%s Failed to parse state file %s: %s", lp, self.state_file, e)
            return None
        return state

    async def write(self, state: RingState) -> bool:
        lp = f"{self.lp}write:"

        def _write_json() -> None:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            with self.state_file.open("w", encoding="utf-8") as f:
                json.dump(state.model_dump(), f, indent=2)

        try:
            await asyncio.to_thread(_write_json)
        except (OSError, TypeError, ValueError):
            logger.exception("%s Failed to write state file", lp)
            return False
        logger.debug("%s State file written: %s", lp, self.state_file)
        return True

    async def get_refresh_token(self, configured_token: str | None) -> str:
        """Saved token first, then the configured one.

        Raises:
            RingCredentialError: neither source holds a token

        """
        state = await self.read()
        if state is not None and state.ring_token:
            logger.info("%s Using refresh token from state file", self.lp)
            return state.ring_token
        if configured_token:
            logger.info("%s Using refresh token from configuration", self.lp)
            return configured_token
        raise RingCredentialError(
            "No refresh token found in the state file or configuration, generate one and set RINGTOKEN"
        )

    async def on_token_update(self, update: RefreshTokenUpdate) -> bool:
        logger.info("%s Refresh token updated, saving to state file", self.lp)
        return await self.write(RingState(ring_token=update.new_refresh_token))
