"""Unit tests for the faucet HTTP client."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from healthguard.services.blockchain.faucet_client import FaucetClient
from healthguard.services.blockchain.models import FaucetEndpoint
from healthguard.utils.exceptions import FaucetRequestError

FORM_FAUCET = FaucetEndpoint(name="Form Faucet", url="https://form.test/")
JSON_FAUCET = FaucetEndpoint(name="JSON Faucet", url="https://json.test/", payload_format="json")


def _client_with_response(status: int = 200, error: Exception | None = None) -> FaucetClient:
    """FaucetClient whose session returns a canned response."""
    response = MagicMock(status=status)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    if error is not None:
        session.post = MagicMock(side_effect=error)
    else:
        session.post = MagicMock(return_value=context)

    client = FaucetClient(timeout=5)
    client._session = session
    return client


class TestRequestFunds:
    """Tests for FaucetClient.request_funds."""

    @pytest.mark.asyncio
    async def test_form_payload(self):
        client = _client_with_response(200)

        await client.request_funds(FORM_FAUCET, "ADDR")

        kwargs = client._session.post.call_args.kwargs
        assert client._session.post.call_args.args == ("https://form.test/",)
        assert kwargs["data"] == {"account": "ADDR"}
        assert "json" not in kwargs

    @pytest.mark.asyncio
    async def test_json_payload(self):
        client = _client_with_response(201)

        await client.request_funds(JSON_FAUCET, "ADDR")

        assert client._session.post.call_args.kwargs["json"] == {"account": "ADDR"}

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self):
        client = _client_with_response(429)

        with pytest.raises(FaucetRequestError) as exc_info:
            await client.request_funds(FORM_FAUCET, "ADDR")

        assert exc_info.value.status == 429
        assert exc_info.value.faucet_name == "Form Faucet"

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        client = _client_with_response(error=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(FaucetRequestError):
            await client.request_funds(FORM_FAUCET, "ADDR")

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        client = _client_with_response(error=TimeoutError())

        with pytest.raises(FaucetRequestError):
            await client.request_funds(FORM_FAUCET, "ADDR")


class TestClose:
    """Tests for session cleanup."""

    @pytest.mark.asyncio
    async def test_close_session(self):
        client = _client_with_response(200)
        session = client._session

        await client.close()

        session.close.assert_awaited_once()
        assert client._session is None

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        await FaucetClient().close()
