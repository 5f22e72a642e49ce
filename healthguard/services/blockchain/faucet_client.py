"""
Testnet faucet HTTP client.

Faucets accept a POST with `{account: address}` (form- or JSON-encoded).
Any 2xx response counts as an acknowledgment; the body is not inspected.
"""

import aiohttp
from loguru import logger

from healthguard.config.constants import FAUCET_TIMEOUT
from healthguard.utils.exceptions import FaucetRequestError
from healthguard.utils.security import mask_address

from .models import FaucetEndpoint


class FaucetClient:
    """Sends funding requests to testnet faucets."""

    def __init__(self, timeout: float = FAUCET_TIMEOUT) -> None:
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def request_funds(self, endpoint: FaucetEndpoint, address: str) -> None:
        """
        Ask a faucet to fund an address.

        Args:
            endpoint: Faucet to call
            address: Address to fund

        Raises:
            FaucetRequestError: On network failure or non-2xx response
        """
        payload = {"account": address}
        if endpoint.payload_format == "json":
            body = {"json": payload}
        else:
            body = {"data": payload}

        logger.info(f"Requesting funds from {endpoint.name} for {mask_address(address)}")
        try:
            session = await self._get_session()
            async with session.post(
                endpoint.url,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                **body,
            ) as response:
                if not 200 <= response.status < 300:
                    raise FaucetRequestError(
                        endpoint.name,
                        f"HTTP {response.status}",
                        status=response.status,
                    )
        except aiohttp.ClientError as e:
            raise FaucetRequestError(endpoint.name, f"request failed: {e}") from e
        except TimeoutError as e:
            raise FaucetRequestError(endpoint.name, "request timed out") from e

        logger.info(f"{endpoint.name} accepted funding request")

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
