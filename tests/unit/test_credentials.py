"""
Unit tests for refresh token persistence.
"""

import json

import pytest

from ring_mqtt.credentials import RingState, TokenStore
from ring_mqtt.exceptions import RingCredentialError
from ring_mqtt.structs import RefreshTokenUpdate


@pytest.fixture
def store(tmp_path):
    return TokenStore(tmp_path / "data" / "ring-state.json")


class TestTokenStore:
    """Tests for TokenStore"""

    @pytest.mark.asyncio
    async def test_write_then_read(self, store):
        ok = await store.write(RingState(ring_token="abc"))

        assert ok is True
        assert json.loads(store.state_file.read_text(encoding="utf-8")) == {"ring_token": "abc"}
        state = await store.read()
        assert state is not None
        assert state.ring_token == "abc"

    @pytest.mark.asyncio
    async def test_missing_file(self, store):
        assert await store.read() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"ring_token": 5}'])
    async def test_invalid_file(self, store, content):
        store.state_file.parent.mkdir(parents=True)
        store.state_file.write_text(content, encoding="utf-8")

        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_saved_token_wins(self, store):
        await store.write(RingState(ring_token="saved"))

        assert await store.get_refresh_token("configured") == "saved"

    @pytest.mark.asyncio
    async def test_configured_token_fallback(self, store):
        assert await store.get_refresh_token("configured") == "configured"

    @pytest.mark.asyncio
    async def test_no_token(self, store):
        with pytest.raises(RingCredentialError) as exc_info:
            _ = await store.get_refresh_token(None)

        assert exc_info.value.exit_code == 2

    @pytest.mark.asyncio
    async def test_token_update_is_persisted(self, store):
        ok = await store.on_token_update(RefreshTokenUpdate(old_refresh_token="old", new_refresh_token="new"))

        assert ok is True
        assert await store.get_refresh_token("configured") == "new"
