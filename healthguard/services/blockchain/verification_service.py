"""
Verification service.

Checks that a ledger transaction's note carries an expected fingerprint.

Verification never raises: every failure is reported as a negative
VerificationOutcome. Nodes may prune pending-transaction details for a
while after confirmation, so a missing note triggers a slower fallback
search before the transaction is reported as unverifiable.
"""

import asyncio
import base64
import binascii
from collections.abc import Mapping
from typing import Any

from loguru import logger

from healthguard.config.constants import (
    FALLBACK_ATTEMPTS,
    FALLBACK_DELAY_STEP,
    FALLBACK_INITIAL_DELAY,
    NOTE_SEARCH_MAX_DEPTH,
    VERIFY_FETCH_ATTEMPTS,
    VERIFY_FETCH_DELAY,
)
from healthguard.utils.exceptions import LedgerError
from healthguard.utils.security import mask_fingerprint, mask_tx_id

from .explorer import ExplorerLinks
from .models import TransactionInfo, VerificationOutcome
from .node_client import LedgerNodeClient
from .note_codec import NoteCodec
from .rpc_wrapper import rpc_call_with_retry

# Known locations of the note in node responses
_NOTE_PATHS = (
    ("txn", "txn", "note"),  # algod pending transaction
    ("txn", "note"),
    ("transaction", "note"),  # indexer-style
)


def _get_path(payload: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    value: Any = payload
    for key in path:
        if not isinstance(value, Mapping) or key not in value:
            return None
        value = value[key]
    return value


def _search_note(value: Any, depth: int) -> Any:
    """Depth-limited search for a key named "note"."""
    if depth < 0:
        return None
    if isinstance(value, Mapping):
        if value.get("note"):
            return value["note"]
        children = value.values()
    elif isinstance(value, (list, tuple)):
        children = value
    else:
        return None

    for child in children:
        found = _search_note(child, depth - 1)
        if found:
            return found
    return None


def find_note(
    payload: Mapping[str, Any], max_depth: int = NOTE_SEARCH_MAX_DEPTH
) -> Any:
    """
    Locate the raw note in a transaction response.

    Tries the known field paths first, then a bounded search.

    Returns:
        Raw note value (usually base64 text) or None
    """
    for path in _NOTE_PATHS:
        note = _get_path(payload, path)
        if note:
            return note
    return _search_note(payload, max_depth)


def decode_note(raw: Any) -> bytes | None:
    """
    Decode a raw note value to bytes.

    Base64 text that decodes to UTF-8 is decoded; anything else (including
    plain text that happens to use only base64 characters) is taken as the
    note itself.
    """
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw)
    if not isinstance(raw, str):
        return None
    try:
        decoded = base64.b64decode(raw, validate=True)
        decoded.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return raw.encode("utf-8")
    return decoded


class VerificationService:
    """Verifies fingerprints against committed transactions."""

    def __init__(
        self,
        node_client: LedgerNodeClient,
        codec: NoteCodec | None = None,
        explorer: ExplorerLinks | None = None,
        fetch_attempts: int = VERIFY_FETCH_ATTEMPTS,
        fetch_delay: float = VERIFY_FETCH_DELAY,
        fallback_attempts: int = FALLBACK_ATTEMPTS,
        fallback_initial_delay: float = FALLBACK_INITIAL_DELAY,
        fallback_delay_step: float = FALLBACK_DELAY_STEP,
    ) -> None:
        self.node_client = node_client
        self.codec = codec or NoteCodec()
        self.explorer = explorer or ExplorerLinks()
        self.fetch_attempts = fetch_attempts
        self.fetch_delay = fetch_delay
        self.fallback_attempts = fallback_attempts
        self.fallback_initial_delay = fallback_initial_delay
        self.fallback_delay_step = fallback_delay_step

    async def verify(self, fingerprint: str, transaction_id: str) -> VerificationOutcome:
        """
        Verify that a transaction's note carries a fingerprint.

        Args:
            fingerprint: Expected fingerprint
            transaction_id: Transaction returned by a commitment

        Returns:
            VerificationOutcome (never raises)
        """
        try:
            outcome = await self._verify(fingerprint, transaction_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error verifying {mask_tx_id(transaction_id)}")
            outcome = self._outcome(transaction_id, error=str(e))

        if outcome.verified:
            logger.success(
                f"Fingerprint {mask_fingerprint(fingerprint)} verified in "
                f"{mask_tx_id(transaction_id)}"
                + (" (secondary method)" if outcome.degraded else "")
            )
        else:
            logger.warning(
                f"Fingerprint {mask_fingerprint(fingerprint)} not verified in "
                f"{mask_tx_id(transaction_id)}: "
                f"confirmed={outcome.confirmed} note_found={outcome.note_found}"
            )
        return outcome

    async def _verify(self, fingerprint: str, transaction_id: str) -> VerificationOutcome:
        if not fingerprint or not transaction_id:
            return self._outcome(transaction_id, error="Fingerprint and transaction id are required")

        try:
            info = await rpc_call_with_retry(
                lambda: self.node_client.get_transaction_info(transaction_id),
                max_retries=self.fetch_attempts,
                operation_name="get_transaction_info",
                base_delay=self.fetch_delay,
                exponential_backoff=False,
            )
        except LedgerError as e:
            return self._outcome(transaction_id, error=str(e))

        if not info.is_confirmed:
            return self._outcome(transaction_id, error="Transaction is not confirmed")

        note = decode_note(find_note(info.payload))
        if note is None:
            logger.info(
                f"No note in {mask_tx_id(transaction_id)}, starting fallback search"
            )
            return await self._fallback_verify(fingerprint, transaction_id, info)

        matched = self.codec.matches(note, fingerprint)
        return self._outcome(
            transaction_id,
            verified=matched,
            fingerprint_matched=matched,
            note_found=True,
            confirmed=True,
            confirmed_round=info.confirmed_round,
        )

    async def _fallback_verify(
        self,
        fingerprint: str,
        transaction_id: str,
        info: TransactionInfo,
    ) -> VerificationOutcome:
        """Re-fetch with growing delays and check raw containment of the fingerprint."""
        if self.fallback_initial_delay:
            await asyncio.sleep(self.fallback_initial_delay)

        for attempt in range(1, self.fallback_attempts + 1):
            try:
                fetched = await self.node_client.get_transaction_info(transaction_id)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(
                    f"Fallback fetch {attempt}/{self.fallback_attempts} failed: {e}"
                )
            else:
                note = decode_note(find_note(fetched.payload))
                if note is not None:
                    text = NoteCodec.to_text(note)
                    matched = fingerprint in text
                    logger.info(
                        f"Note found by fallback search on attempt {attempt}"
                    )
                    return self._outcome(
                        transaction_id,
                        verified=matched,
                        fingerprint_matched=matched,
                        note_found=True,
                        confirmed=True,
                        degraded=True,
                        confirmed_round=fetched.confirmed_round or info.confirmed_round,
                    )

            if attempt < self.fallback_attempts:
                delay = self.fallback_delay_step * attempt
                if delay:
                    await asyncio.sleep(delay)

        return self._outcome(
            transaction_id,
            confirmed=True,
            confirmed_round=info.confirmed_round,
            error="Note not found in transaction",
        )

    def _outcome(
        self,
        transaction_id: str,
        verified: bool = False,
        fingerprint_matched: bool = False,
        note_found: bool = False,
        confirmed: bool = False,
        degraded: bool = False,
        confirmed_round: int | None = None,
        error: str | None = None,
    ) -> VerificationOutcome:
        return VerificationOutcome(
            verified=verified,
            fingerprint_matched=fingerprint_matched,
            note_found=note_found,
            confirmed=confirmed,
            degraded=degraded,
            transaction_id=transaction_id,
            confirmed_round=confirmed_round,
            explorer_url=self.explorer.transaction(transaction_id) if transaction_id else None,
            error=error,
        )
