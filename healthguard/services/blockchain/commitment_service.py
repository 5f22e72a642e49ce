"""
Commitment service.

Records a fingerprint on the ledger as the note of a zero-value payment
from an identity to itself, with retry and confirmation.

Commits for the same identity must be serialized by the caller; the ledger
orders transactions per account.
"""

import asyncio
from collections.abc import Sequence

from loguru import logger

from healthguard.config.constants import (
    COMMIT_MAX_ATTEMPTS,
    COMMIT_RETRY_DELAY_BASE,
    COMMIT_RETRY_HINT_MINUTES,
    DEFAULT_CONFIRMATION_ROUNDS,
    MINIMUM_BALANCE_MICROALGOS,
    PARAMS_MAX_ATTEMPTS,
    PARAMS_RETRY_DELAY_BASE,
)
from healthguard.utils.exceptions import (
    CommitmentFailed,
    CommitmentFailureReason,
    FundingUnavailable,
    LedgerError,
    NoteEncodingError,
    classify_commitment_error,
)
from healthguard.utils.security import mask_address, mask_fingerprint, mask_tx_id

from .core_constants import MANUAL_FUNDING_URLS
from .explorer import ExplorerLinks
from .funding_coordinator import FundingCoordinator
from .identity_provisioner import IdentityProvisioner
from .models import Commitment, Identity, NoteMetadata, TransactionInfo, now_millis
from .node_client import LedgerNodeClient
from .note_codec import NoteCodec
from .rpc_wrapper import rpc_call_with_retry
from .transaction_builder import build_note_transaction, sign_transaction


def commitment_guidance(
    reason: CommitmentFailureReason,
    manual_funding_urls: Sequence[str] = MANUAL_FUNDING_URLS,
) -> str:
    """User-facing advice for a failed commitment."""
    if reason == CommitmentFailureReason.INSUFFICIENT_FUNDS:
        return (
            "The account has insufficient funds. Fund it at "
            f"{', '.join(manual_funding_urls)} and try again."
        )
    if reason == CommitmentFailureReason.INVALID_NOTE:
        return "The fingerprint cannot be stored in a ledger note."
    if reason == CommitmentFailureReason.NODE_REJECTED:
        return (
            "The ledger node rejected the transaction. "
            f"Try again in {COMMIT_RETRY_HINT_MINUTES} minutes."
        )
    return f"The ledger is unreachable right now. Try again in {COMMIT_RETRY_HINT_MINUTES} minutes."


class CommitmentService:
    """Builds, signs, submits and confirms fingerprint commitments."""

    def __init__(
        self,
        node_client: LedgerNodeClient,
        funding: FundingCoordinator,
        provisioner: IdentityProvisioner | None = None,
        codec: NoteCodec | None = None,
        explorer: ExplorerLinks | None = None,
        auto_fund: bool = True,
        minimum_balance: int = MINIMUM_BALANCE_MICROALGOS,
        max_attempts: int = COMMIT_MAX_ATTEMPTS,
        retry_base_delay: float = COMMIT_RETRY_DELAY_BASE,
        confirmation_rounds: int = DEFAULT_CONFIRMATION_ROUNDS,
        params_max_attempts: int = PARAMS_MAX_ATTEMPTS,
        params_retry_delay: float = PARAMS_RETRY_DELAY_BASE,
    ) -> None:
        self.node_client = node_client
        self.funding = funding
        self.provisioner = provisioner or IdentityProvisioner()
        self.codec = codec or NoteCodec()
        self.explorer = explorer or ExplorerLinks()
        self.auto_fund = auto_fund
        self.minimum_balance = minimum_balance
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.confirmation_rounds = confirmation_rounds
        self.params_max_attempts = params_max_attempts
        self.params_retry_delay = params_retry_delay

    async def commit(self, identity: Identity, fingerprint: str) -> Commitment:
        """
        Commit a fingerprint to the ledger.

        Args:
            identity: Signing identity (pays the fee)
            fingerprint: Fingerprint to record

        Returns:
            Commitment for the confirmed transaction

        Raises:
            InvalidIdentity: If the identity fails validation
            CommitmentFailed: If every attempt failed
        """
        self.provisioner.require_valid(identity)
        masked = mask_address(identity.address)

        logger.info(
            f"Committing fingerprint {mask_fingerprint(fingerprint)} from {masked}"
        )

        last_error: Exception | None = None
        last_tx_id: str | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                # A previous attempt may have landed after we gave up on it
                if last_tx_id:
                    info = await self._confirmed_info(last_tx_id)
                    if info:
                        logger.success(
                            f"Previous transaction {mask_tx_id(last_tx_id)} "
                            f"confirmed - no retry needed"
                        )
                        return self._build_commitment(identity, fingerprint, last_tx_id, info)

                if self.auto_fund:
                    await self._fund(identity.address)

                params = await rpc_call_with_retry(
                    self.node_client.get_transaction_params,
                    max_retries=self.params_max_attempts,
                    operation_name="get_transaction_params",
                    base_delay=self.params_retry_delay,
                )

                note = self.codec.encode(fingerprint, NoteMetadata.now())
                transaction = build_note_transaction(identity, params, note)
                signed = sign_transaction(transaction, identity)

                last_tx_id = await self.node_client.submit_transaction(signed)
                info = await self.node_client.wait_for_confirmation(
                    last_tx_id, self.confirmation_rounds
                )

                commitment = self._build_commitment(identity, fingerprint, last_tx_id, info)
                logger.success(
                    f"Fingerprint committed: tx={mask_tx_id(commitment.transaction_id)} "
                    f"round={commitment.confirmed_block}"
                )
                return commitment

            except asyncio.CancelledError:
                raise
            except NoteEncodingError as e:
                raise CommitmentFailed(
                    CommitmentFailureReason.INVALID_NOTE,
                    f"Cannot encode fingerprint: {e}",
                    attempts=attempt,
                    guidance=commitment_guidance(CommitmentFailureReason.INVALID_NOTE),
                ) from e
            except Exception as e:
                last_error = e
                if attempt < self.max_attempts:
                    delay = self.retry_base_delay * attempt
                    logger.warning(
                        f"Commit attempt {attempt}/{self.max_attempts} failed: {e}. "
                        f"Retrying in {delay}s..."
                    )
                    if delay:
                        await asyncio.sleep(delay)

        reason = (
            classify_commitment_error(last_error)
            if last_error
            else CommitmentFailureReason.UNKNOWN
        )
        logger.error(
            f"Commitment failed after {self.max_attempts} attempts "
            f"({reason.value}): {last_error}"
        )
        raise CommitmentFailed(
            reason,
            f"Commitment failed after {self.max_attempts} attempts: {last_error}",
            attempts=self.max_attempts,
            guidance=commitment_guidance(reason, self.funding.manual_funding_urls),
        ) from last_error

    async def _fund(self, address: str) -> None:
        try:
            await self.funding.require_funded(address, self.minimum_balance)
        except FundingUnavailable as e:
            # The ledger rejects the payment if the account really is short
            logger.warning(f"Proceeding without confirmed funding: {e}")

    async def _confirmed_info(self, transaction_id: str) -> TransactionInfo | None:
        try:
            info = await self.node_client.get_transaction_info(transaction_id)
        except LedgerError as e:
            logger.debug(f"Status check of {mask_tx_id(transaction_id)} failed: {e}")
            return None
        return info if info.is_confirmed else None

    def _build_commitment(
        self,
        identity: Identity,
        fingerprint: str,
        transaction_id: str,
        info: TransactionInfo,
    ) -> Commitment:
        return Commitment(
            transaction_id=transaction_id,
            confirmed_block=info.confirmed_round or 0,
            committed_at_millis=now_millis(),
            fingerprint=fingerprint,
            identity_address=identity.address,
            explorer_url=self.explorer.transaction(transaction_id),
        )
