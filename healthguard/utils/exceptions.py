"""
Exception handling utilities.

Defines the ledger integrity error taxonomy and categorized exception
types for retry decisions.
"""

from enum import Enum

from aiohttp import ClientError
from algosdk.error import AlgodHTTPError


class LedgerError(Exception):
    """Base exception for ledger integrity errors."""
    pass


class IdentityGenerationExhausted(LedgerError):
    """Raised when every identity generation strategy failed."""

    def __init__(self, failures: list[str]) -> None:
        self.failures = failures
        details = "; ".join(failures) if failures else "no strategies configured"
        super().__init__(f"All identity generation strategies failed: {details}")


class InvalidIdentity(LedgerError, ValueError):
    """Raised when an identity fails address/key validation."""
    pass


class FundingUnavailable(LedgerError):
    """Raised when an address could not be brought to the minimum balance."""

    def __init__(
        self,
        address: str,
        minimum_balance: int,
        manual_funding_urls: list[str] | None = None,
    ) -> None:
        self.address = address
        self.minimum_balance = minimum_balance
        self.manual_funding_urls = manual_funding_urls or []
        message = f"Account balance is below {minimum_balance} microAlgos"
        if self.manual_funding_urls:
            message += (
                f"; fund it manually at {', '.join(self.manual_funding_urls)}"
            )
        super().__init__(message)


class LedgerNodeError(LedgerError):
    """Raised when a ledger node RPC call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class LedgerTimeoutError(LedgerNodeError):
    """Raised when a ledger node RPC call times out."""
    pass


class ConfirmationTimeout(LedgerNodeError):
    """Raised when a transaction is not confirmed within the round budget."""
    pass


class TransactionRejected(LedgerNodeError):
    """Raised when the node's transaction pool rejects a transaction."""
    pass


class FaucetRequestError(LedgerError):
    """Raised when a faucet request fails (network error or non-2xx)."""

    def __init__(self, faucet_name: str, message: str, status: int | None = None) -> None:
        self.faucet_name = faucet_name
        self.status = status
        super().__init__(f"{faucet_name}: {message}")


class NoteEncodingError(LedgerError, ValueError):
    """Raised when a fingerprint cannot be encoded into a note."""
    pass


class CommitmentFailureReason(str, Enum):
    """Why a commitment could not be recorded on the ledger."""

    INSUFFICIENT_FUNDS = "insufficient_funds"
    NETWORK_ERROR = "network_error"
    NODE_REJECTED = "node_rejected"
    CONFIRMATION_TIMEOUT = "confirmation_timeout"
    INVALID_NOTE = "invalid_note"
    UNKNOWN = "unknown"


class CommitmentFailed(LedgerError):
    """Raised when a commitment failed after exhausting retries."""

    def __init__(
        self,
        reason: CommitmentFailureReason,
        message: str,
        attempts: int = 0,
        guidance: str | None = None,
    ) -> None:
        self.reason = reason
        self.attempts = attempts
        self.guidance = guidance
        super().__init__(message)


# Exception categories based on handling strategy

# Transient - worth retrying (network, node availability)
TRANSIENT_ERRORS = (
    LedgerNodeError,
    FaucetRequestError,
    AlgodHTTPError,
    ClientError,
    ConnectionError,
    TimeoutError,
    OSError,
)

# Permanent - retrying cannot help (bad keys, bad checksums, bad notes)
PERMANENT_ERRORS = (
    InvalidIdentity,
    NoteEncodingError,
)

_INSUFFICIENT_FUNDS_MARKERS = ("overspend", "insufficient", "below min")


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception is a transient (retryable) failure.

    Args:
        exc: Exception to check

    Returns:
        True if a retry may succeed
    """
    if isinstance(exc, PERMANENT_ERRORS):
        return False
    return isinstance(exc, TRANSIENT_ERRORS)


def classify_commitment_error(exc: BaseException) -> CommitmentFailureReason:
    """
    Map an underlying error to a commitment failure reason.

    Args:
        exc: Error raised by a commitment step

    Returns:
        CommitmentFailureReason for user-facing guidance
    """
    message = str(exc).lower()

    if any(marker in message for marker in _INSUFFICIENT_FUNDS_MARKERS):
        return CommitmentFailureReason.INSUFFICIENT_FUNDS
    if isinstance(exc, NoteEncodingError):
        return CommitmentFailureReason.INVALID_NOTE
    if isinstance(exc, ConfirmationTimeout):
        return CommitmentFailureReason.CONFIRMATION_TIMEOUT
    if isinstance(exc, TransactionRejected):
        return CommitmentFailureReason.NODE_REJECTED
    if isinstance(exc, (LedgerTimeoutError, TimeoutError, ConnectionError, ClientError)):
        return CommitmentFailureReason.NETWORK_ERROR

    status_code = getattr(exc, "status_code", None)
    if status_code is None and isinstance(exc, AlgodHTTPError):
        status_code = getattr(exc, "code", None)
    if status_code is not None and 400 <= status_code < 500:
        return CommitmentFailureReason.NODE_REJECTED
    if isinstance(exc, (LedgerNodeError, AlgodHTTPError, OSError)):
        return CommitmentFailureReason.NETWORK_ERROR

    return CommitmentFailureReason.UNKNOWN
