"""
Async executor for ledger node operations with failover support.

Provides async execution of synchronous algod client calls with automatic
failover between a primary and a backup node.
"""

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from algosdk.error import AlgodHTTPError
from algosdk.v2client.algod import AlgodClient
from loguru import logger

from healthguard.config.constants import LEDGER_EXECUTOR_TIMEOUT, LEDGER_EXECUTOR_WORKERS
from healthguard.utils.exceptions import LedgerTimeoutError

T = TypeVar("T")


def _is_availability_error(exc: BaseException) -> bool:
    """Node unreachable or failing server-side (as opposed to a node answer)."""
    if isinstance(exc, AlgodHTTPError):
        code = getattr(exc, "code", None)
        return code is None or code >= 500
    return isinstance(exc, (OSError, TimeoutError, LedgerTimeoutError))


class AlgodExecutor:
    """
    Async executor for algod client operations.

    Handles:
    - Thread pool execution of sync algod calls
    - Automatic failover between providers
    - Timeout handling
    """

    def __init__(
        self,
        providers: dict[str, AlgodClient],
        max_workers: int = LEDGER_EXECUTOR_WORKERS,
        timeout: float = LEDGER_EXECUTOR_TIMEOUT,
    ) -> None:
        """
        Initialize async executor.

        Args:
            providers: Named algod clients; the first one is the primary
            max_workers: Maximum thread pool workers
            timeout: Timeout per call in seconds
        """
        if not providers:
            raise ValueError("At least one algod provider is required")

        self.providers = providers
        self.active_provider_name = next(iter(providers))
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="algod",
        )

    async def _run_on(
        self,
        name: str,
        sync_func: Callable[[AlgodClient], T],
        timeout: float,
    ) -> T:
        loop = asyncio.get_running_loop()
        client = self.providers[name]
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(self._executor, lambda: sync_func(client)),
                timeout=timeout,
            )
        except TimeoutError as e:
            logger.error(f"Timeout in ledger operation on provider '{name}'")
            raise LedgerTimeoutError(f"Ledger operation timeout on {name}") from e

    async def run(
        self,
        sync_func: Callable[[AlgodClient], T],
        timeout: float | None = None,
    ) -> T:
        """
        Run a synchronous algod function with failover logic.

        Args:
            sync_func: Synchronous function that takes an AlgodClient
            timeout: Override for the per-call timeout

        Returns:
            Result from the function

        Raises:
            Exception: The primary provider's error if no backup succeeds
        """
        call_timeout = timeout or self.timeout
        current_name = self.active_provider_name

        try:
            return await self._run_on(current_name, sync_func, call_timeout)
        except asyncio.CancelledError:
            logger.warning("Ledger operation cancelled")
            raise
        except Exception as e:
            if not _is_availability_error(e):
                raise

            backup_name = next(
                (n for n in self.providers if n != current_name), None
            )
            if not backup_name:
                raise

            logger.warning(
                f"Provider '{current_name}' failed: {e}. "
                f"Switching to backup: {backup_name}"
            )
            try:
                result = await self._run_on(backup_name, sync_func, call_timeout)
            except asyncio.CancelledError:
                raise
            except Exception as e2:
                logger.error(f"Backup provider '{backup_name}' failed: {e2}")
                raise e from e2

            self.active_provider_name = backup_name
            return result

    def cleanup(self) -> None:
        """Clean up thread pool executor."""
        if self._executor:
            self._executor.shutdown(wait=False)
