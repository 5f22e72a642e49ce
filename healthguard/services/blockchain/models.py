"""
Ledger integrity data models.

Value types passed between the identity, funding, commitment and
verification services.
"""

import base64
import time
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from algosdk import account

from healthguard.utils.security import mask_private_key

from .core_constants import NOTE_APP_NAME, NOTE_FORMAT_VERSION


def now_millis() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Identity:
    """Ledger signing identity (address + 64-byte ed25519 secret key)."""

    address: str
    private_key: bytes = field(repr=False)
    mnemonic: str | None = field(default=None, repr=False)

    @classmethod
    def from_algosdk_key(cls, private_key: str, mnemonic: str | None = None) -> "Identity":
        """
        Build an identity from an algosdk base64 private key.

        Args:
            private_key: Base64-encoded 64-byte key as returned by algosdk
            mnemonic: Optional 25-word recovery phrase
        """
        return cls(
            address=account.address_from_private_key(private_key),
            private_key=base64.b64decode(private_key),
            mnemonic=mnemonic,
        )

    @property
    def signing_key(self) -> str:
        """Private key in the base64 form algosdk signs with."""
        return base64.b64encode(self.private_key).decode("ascii")

    def __repr__(self) -> str:
        return (
            f"Identity(address={self.address!r}, "
            f"private_key={mask_private_key(self.private_key)!r}, "
            f"mnemonic={mask_private_key(self.mnemonic)!r})"
        )


@dataclass(frozen=True)
class AccountInfo:
    """Account balance snapshot."""

    address: str
    amount: int  # microAlgos


@dataclass(frozen=True)
class TransactionInfo:
    """
    Transaction info returned by the node.

    `payload` keeps the raw node response so that note lookups can try
    the known field paths.
    """

    transaction_id: str
    confirmed_round: int | None
    pool_error: str = ""
    payload: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, transaction_id: str, payload: Mapping[str, Any]) -> "TransactionInfo":
        """Build from an algod pending-transaction response."""
        confirmed_round = payload.get("confirmed-round") or None
        return cls(
            transaction_id=transaction_id,
            confirmed_round=int(confirmed_round) if confirmed_round else None,
            pool_error=payload.get("pool-error") or "",
            payload=payload,
        )

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_round is not None and self.confirmed_round > 0


@dataclass(frozen=True)
class NoteMetadata:
    """Metadata embedded in the structured note format."""

    created_at_millis: int
    format_version: str = NOTE_FORMAT_VERSION
    app: str = NOTE_APP_NAME

    @classmethod
    def now(cls) -> "NoteMetadata":
        return cls(created_at_millis=now_millis())


@dataclass(frozen=True)
class FaucetEndpoint:
    """External testnet faucet."""

    name: str
    url: str
    payload_format: str = "form"  # "form" or "json"

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> "FaucetEndpoint":
        return cls(
            name=data["name"],
            url=data["url"],
            payload_format=data.get("payload_format", "form"),
        )


@dataclass(frozen=True)
class Commitment:
    """Proof that a fingerprint was recorded on the ledger."""

    transaction_id: str
    confirmed_block: int
    committed_at_millis: int
    fingerprint: str
    identity_address: str
    explorer_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class VerificationOutcome:
    """Result of verifying a fingerprint against a ledger transaction."""

    verified: bool
    fingerprint_matched: bool
    note_found: bool
    confirmed: bool
    degraded: bool = False
    transaction_id: str | None = None
    confirmed_round: int | None = None
    explorer_url: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
