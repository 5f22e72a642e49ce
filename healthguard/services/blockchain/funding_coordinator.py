"""
Funding coordinator.

Brings an address up to a minimum balance by asking testnet faucets in
order. A faucet failure is never fatal; running out of faucets returns
False so the caller decides whether to proceed.
"""

import asyncio
from collections.abc import Sequence

from loguru import logger

from healthguard.config.constants import (
    BALANCE_CHECK_ATTEMPTS,
    BALANCE_CHECK_DELAY_BASE,
    FAUCET_SETTLE_DELAY,
    MICROALGOS_PER_ALGO,
    MINIMUM_BALANCE_MICROALGOS,
)
from healthguard.utils.exceptions import FaucetRequestError, FundingUnavailable, LedgerError
from healthguard.utils.security import mask_address

from .core_constants import DEFAULT_FAUCETS, MANUAL_FUNDING_URLS
from .faucet_client import FaucetClient
from .models import FaucetEndpoint
from .node_client import LedgerNodeClient
from .rpc_wrapper import rpc_call_with_retry


class FundingCoordinator:
    """Checks balances and requests faucet funds when below the minimum."""

    def __init__(
        self,
        node_client: LedgerNodeClient,
        faucet_client: FaucetClient,
        faucets: Sequence[FaucetEndpoint] | None = None,
        settle_delay: float = FAUCET_SETTLE_DELAY,
        balance_check_attempts: int = BALANCE_CHECK_ATTEMPTS,
        balance_check_delay: float = BALANCE_CHECK_DELAY_BASE,
        manual_funding_urls: Sequence[str] = MANUAL_FUNDING_URLS,
    ) -> None:
        self.node_client = node_client
        self.faucet_client = faucet_client
        self.faucets = list(
            faucets if faucets is not None
            else (FaucetEndpoint.from_dict(f) for f in DEFAULT_FAUCETS)
        )
        self.settle_delay = settle_delay
        self.balance_check_attempts = balance_check_attempts
        self.balance_check_delay = balance_check_delay
        self.manual_funding_urls = list(manual_funding_urls)

    async def get_balance(self, address: str) -> int:
        """Balance in microAlgos, retried on transient node errors."""
        return await rpc_call_with_retry(
            lambda: self.node_client.get_balance(address),
            max_retries=self.balance_check_attempts,
            operation_name="get_balance",
            base_delay=self.balance_check_delay,
        )

    async def ensure_funded(
        self,
        address: str,
        minimum_balance: int = MINIMUM_BALANCE_MICROALGOS,
    ) -> bool:
        """
        Make sure an address holds at least the minimum balance.

        Args:
            address: Address to fund
            minimum_balance: Threshold in microAlgos

        Returns:
            True if the balance reached the threshold, False otherwise
        """
        masked = mask_address(address)

        try:
            balance = await self.get_balance(address)
        except LedgerError as e:
            logger.error(f"Could not read balance of {masked}: {e}")
            return False

        if balance >= minimum_balance:
            logger.debug(
                f"{masked} already funded: {balance / MICROALGOS_PER_ALGO:.6f} ALGO"
            )
            return True

        logger.info(
            f"{masked} balance {balance} below minimum {minimum_balance}, "
            f"trying {len(self.faucets)} faucet(s)"
        )

        for faucet in self.faucets:
            try:
                await self.faucet_client.request_funds(faucet, address)
            except FaucetRequestError as e:
                logger.warning(f"Faucet request failed: {e}")
                continue

            if self.settle_delay:
                await asyncio.sleep(self.settle_delay)

            try:
                balance = await self.get_balance(address)
            except LedgerError as e:
                logger.warning(f"Balance check after {faucet.name} failed: {e}")
                continue

            if balance >= minimum_balance:
                logger.success(
                    f"{masked} funded by {faucet.name}: "
                    f"{balance / MICROALGOS_PER_ALGO:.6f} ALGO"
                )
                return True

            logger.info(f"{faucet.name} acknowledged but balance is still {balance}")

        logger.warning(
            f"Could not fund {masked} automatically. "
            f"Fund it manually: {', '.join(self.manual_funding_urls)}"
        )
        return False

    async def require_funded(
        self,
        address: str,
        minimum_balance: int = MINIMUM_BALANCE_MICROALGOS,
    ) -> None:
        """
        Like ensure_funded, but raise when funding did not succeed.

        Raises:
            FundingUnavailable: With manual funding URLs for the user
        """
        if not await self.ensure_funded(address, minimum_balance):
            raise FundingUnavailable(
                address,
                minimum_balance,
                manual_funding_urls=self.manual_funding_urls,
            )
