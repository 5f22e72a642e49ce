"""
RPC Wrapper with Timeout and Retry Logic.

Provides centralized timeout and retry functionality for ledger node calls.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

from healthguard.config.constants import LEDGER_NODE_TIMEOUT
from healthguard.utils.exceptions import (
    LedgerError,
    LedgerNodeError,
    LedgerTimeoutError,
    is_transient,
)

T = TypeVar("T")


async def with_timeout(
    coro: Awaitable[T],
    timeout: float = LEDGER_NODE_TIMEOUT,
    operation_name: str = "RPC call",
) -> T:
    """
    Execute async coroutine with timeout.

    Args:
        coro: Coroutine to execute
        timeout: Timeout in seconds (default: LEDGER_NODE_TIMEOUT)
        operation_name: Operation name for logging

    Returns:
        Result of the coroutine

    Raises:
        LedgerTimeoutError: If operation times out
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError as e:
        error_msg = f"{operation_name} timed out after {timeout}s"
        logger.error(error_msg)
        raise LedgerTimeoutError(error_msg) from e


async def rpc_call_with_retry(
    coro_factory: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    timeout: float = LEDGER_NODE_TIMEOUT,
    operation_name: str = "RPC call",
    base_delay: float = 1.0,
    exponential_backoff: bool = True,
) -> T:
    """
    Execute RPC call with retry logic and timeout.

    Only transient errors (node, network, timeout) are retried; anything
    else, including bad identities and bad notes, is raised immediately.

    Args:
        coro_factory: Factory function that returns a coroutine
        max_retries: Maximum number of attempts
        timeout: Timeout per attempt in seconds
        operation_name: Operation name for logging
        base_delay: Delay before the first retry in seconds
        exponential_backoff: Double the delay after each failure

    Returns:
        Result of the RPC call

    Raises:
        LedgerTimeoutError: If the last attempt timed out
        LedgerError: If all attempts fail with errors
    """
    last_error: Exception | None = None

    for attempt in range(max_retries):
        try:
            result = await with_timeout(
                coro_factory(),
                timeout=timeout,
                operation_name=f"{operation_name} (attempt {attempt + 1}/{max_retries})",
            )

            if attempt > 0:
                logger.success(
                    f"{operation_name} succeeded on attempt {attempt + 1}"
                )

            return result

        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not is_transient(e):
                raise
            last_error = e

            if attempt < max_retries - 1:
                if exponential_backoff:
                    delay = base_delay * (2 ** attempt)  # 1s, 2s, 4s...
                else:
                    delay = base_delay

                logger.warning(
                    f"{operation_name} failed on attempt {attempt + 1}/{max_retries}: {e}. "
                    f"Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
            else:
                logger.error(
                    f"{operation_name} failed after {max_retries} attempts: {e}"
                )

    if isinstance(last_error, LedgerError):
        raise last_error
    raise LedgerNodeError(
        f"{operation_name} failed after {max_retries} attempts: {last_error}"
    ) from last_error
