"""
Ledger node client.

Async wrapper over the synchronous algod v2 client. Every SDK call runs on
the executor thread pool; SDK HTTP errors are translated to LedgerNodeError
so callers only deal with the project's error taxonomy.
"""

import base64
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

from algosdk.error import AlgodHTTPError
from algosdk.transaction import SuggestedParams
from algosdk.v2client.algod import AlgodClient
from loguru import logger

from healthguard.config.constants import DEFAULT_CONFIRMATION_ROUNDS, LEDGER_CONFIRMATION_TIMEOUT
from healthguard.utils.exceptions import (
    ConfirmationTimeout,
    LedgerNodeError,
    TransactionRejected,
)
from healthguard.utils.security import mask_address, mask_tx_id

from .async_executor import AlgodExecutor
from .models import AccountInfo, TransactionInfo

T = TypeVar("T")

_MISSING_ACCOUNT_MARKERS = ("no accounts found", "account does not exist")


class LedgerNodeClient(Protocol):
    """Operations the integrity services need from a ledger node."""

    async def get_status(self) -> dict[str, Any]: ...

    async def get_transaction_params(self) -> SuggestedParams: ...

    async def get_account_info(self, address: str) -> AccountInfo: ...

    async def get_balance(self, address: str) -> int: ...

    async def submit_transaction(self, signed_transaction: bytes) -> str: ...

    async def get_transaction_info(self, transaction_id: str) -> TransactionInfo: ...

    async def wait_for_confirmation(
        self, transaction_id: str, max_rounds: int = DEFAULT_CONFIRMATION_ROUNDS
    ) -> TransactionInfo: ...


class AlgodNodeClient:
    """LedgerNodeClient backed by algosdk's AlgodClient."""

    def __init__(self, executor: AlgodExecutor) -> None:
        self.executor = executor

    @classmethod
    def from_endpoints(
        cls,
        server: str,
        port: int | None = None,
        token: str = "",
        backup_server: str | None = None,
        timeout: float | None = None,
    ) -> "AlgodNodeClient":
        """
        Build a client for a primary (and optional backup) algod node.

        Args:
            server: Primary node URL
            port: Node port, appended to both URLs when given
            token: API token (empty for public nodes)
            backup_server: Backup node URL used for failover
            timeout: Per-call timeout in seconds
        """
        providers = {"primary": AlgodClient(token, _node_address(server, port))}
        if backup_server:
            providers["backup"] = AlgodClient(token, _node_address(backup_server, port))

        executor = (
            AlgodExecutor(providers, timeout=timeout)
            if timeout
            else AlgodExecutor(providers)
        )
        logger.info(
            f"Algod client configured: primary={server}"
            + (f", backup={backup_server}" if backup_server else "")
        )
        return cls(executor)

    async def _call(
        self,
        operation: str,
        sync_func: Callable[[AlgodClient], T],
        timeout: float | None = None,
    ) -> T:
        try:
            return await self.executor.run(sync_func, timeout=timeout)
        except AlgodHTTPError as e:
            code = getattr(e, "code", None)
            raise LedgerNodeError(f"{operation} failed: {e}", status_code=code) from e
        except OSError as e:
            raise LedgerNodeError(f"{operation} failed: {e}") from e

    async def get_status(self) -> dict[str, Any]:
        return await self._call("get_status", lambda c: c.status())

    async def get_transaction_params(self) -> SuggestedParams:
        return await self._call("get_transaction_params", lambda c: c.suggested_params())

    async def get_account_info(self, address: str) -> AccountInfo:
        """
        Get account balance.

        A never-funded account reports zero instead of an error.
        """
        try:
            info = await self._call("get_account_info", lambda c: c.account_info(address))
        except LedgerNodeError as e:
            message = str(e).lower()
            if e.status_code == 404 or any(m in message for m in _MISSING_ACCOUNT_MARKERS):
                logger.debug(f"Account {mask_address(address)} not found on ledger, balance 0")
                return AccountInfo(address=address, amount=0)
            raise
        return AccountInfo(address=address, amount=int(info.get("amount", 0)))

    async def get_balance(self, address: str) -> int:
        return (await self.get_account_info(address)).amount

    async def submit_transaction(self, signed_transaction: bytes) -> str:
        """
        Submit a signed transaction.

        Args:
            signed_transaction: msgpack-encoded signed transaction

        Returns:
            Transaction ID assigned by the node
        """
        encoded = base64.b64encode(signed_transaction).decode("ascii")
        tx_id = await self._call(
            "submit_transaction", lambda c: c.send_raw_transaction(encoded)
        )
        logger.info(f"Transaction submitted: {mask_tx_id(tx_id)}")
        return tx_id

    async def get_transaction_info(self, transaction_id: str) -> TransactionInfo:
        payload = await self._call(
            "get_transaction_info",
            lambda c: c.pending_transaction_info(transaction_id),
        )
        return TransactionInfo.from_response(transaction_id, payload)

    async def wait_for_confirmation(
        self,
        transaction_id: str,
        max_rounds: int = DEFAULT_CONFIRMATION_ROUNDS,
    ) -> TransactionInfo:
        """
        Wait until the transaction is confirmed.

        Args:
            transaction_id: Transaction to wait for
            max_rounds: Number of ledger rounds to wait

        Returns:
            TransactionInfo of the confirmed transaction

        Raises:
            TransactionRejected: If the pool reports an error for it
            ConfirmationTimeout: If not confirmed within max_rounds
        """
        status = await self.get_status()
        start_round = int(status.get("last-round", 0)) + 1
        current_round = start_round

        while current_round < start_round + max_rounds:
            info = await self.get_transaction_info(transaction_id)
            if info.is_confirmed:
                logger.info(
                    f"Transaction {mask_tx_id(transaction_id)} "
                    f"confirmed in round {info.confirmed_round}"
                )
                return info
            if info.pool_error:
                raise TransactionRejected(
                    f"Transaction {transaction_id} rejected: {info.pool_error}"
                )

            round_to_wait = current_round
            await self._call(
                "status_after_block",
                lambda c: c.status_after_block(round_to_wait),
                timeout=LEDGER_CONFIRMATION_TIMEOUT,
            )
            current_round += 1

        raise ConfirmationTimeout(
            f"Transaction {transaction_id} not confirmed after {max_rounds} rounds"
        )

    async def close(self) -> None:
        self.executor.cleanup()


def _node_address(server: str, port: int | None) -> str:
    server = server.rstrip("/")
    if port is None:
        return server
    return f"{server}:{port}"
