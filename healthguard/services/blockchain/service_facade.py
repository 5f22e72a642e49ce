"""
Ledger integrity service - Main coordinator.

This module provides the LedgerIntegrityService class that wires the
integrity components together from Settings and delegates to them:
- IdentityProvisioner: identity generation and validation
- FundingCoordinator: faucet funding up to a minimum balance
- CommitmentService: fingerprint commitments
- VerificationService: fingerprint verification

Clients are passed in explicitly (or built from Settings); there is no
module-level shared client.
"""

from collections.abc import Mapping
from typing import Any

from loguru import logger

from healthguard.config.settings import Settings
from healthguard.utils.hashing import create_health_data_fingerprint

from .commitment_service import CommitmentService
from .explorer import ExplorerLinks
from .faucet_client import FaucetClient
from .funding_coordinator import FundingCoordinator
from .identity_provisioner import IdentityProvisioner
from .models import Commitment, Identity, VerificationOutcome
from .node_client import AlgodNodeClient, LedgerNodeClient
from .note_codec import NoteCodec
from .verification_service import VerificationService


class LedgerIntegrityService:
    """
    Ledger-backed integrity commitments for health records.

    This class acts as a coordinator, delegating operations to
    specialized services.
    """

    def __init__(
        self,
        settings: Settings,
        node_client: LedgerNodeClient | None = None,
        faucet_client: FaucetClient | None = None,
        provisioner: IdentityProvisioner | None = None,
    ) -> None:
        """
        Initialize ledger integrity service.

        Args:
            settings: Application settings
            node_client: Ledger node client (built from settings if omitted)
            faucet_client: Faucet client (built from settings if omitted)
            provisioner: Identity provisioner (default strategies if omitted)
        """
        self.settings = settings

        self.node_client = node_client or AlgodNodeClient.from_endpoints(
            settings.algod_server,
            port=settings.algod_port,
            token=settings.algod_token,
            backup_server=settings.algod_backup_server,
            timeout=settings.node_timeout,
        )
        self.faucet_client = faucet_client or FaucetClient(timeout=settings.faucet_timeout)

        self.explorer = ExplorerLinks(settings.network, settings.explorer_base_url)
        self.codec = NoteCodec()
        self.provisioner = provisioner or IdentityProvisioner()

        self.funding = FundingCoordinator(
            self.node_client,
            self.faucet_client,
            settle_delay=settings.faucet_settle_delay,
        )

        self.commitments = CommitmentService(
            self.node_client,
            self.funding,
            provisioner=self.provisioner,
            codec=self.codec,
            explorer=self.explorer,
            auto_fund=bool(settings.auto_fund),
            minimum_balance=settings.minimum_balance_microalgos,
            max_attempts=settings.commit_max_attempts,
            retry_base_delay=settings.commit_retry_base_delay,
            confirmation_rounds=settings.confirmation_rounds,
            params_max_attempts=settings.params_max_attempts,
        )

        self.verifications = VerificationService(
            self.node_client,
            codec=self.codec,
            explorer=self.explorer,
            fetch_attempts=settings.verify_fetch_attempts,
            fetch_delay=settings.verify_fetch_delay,
            fallback_attempts=settings.fallback_attempts,
            fallback_initial_delay=settings.fallback_initial_delay,
            fallback_delay_step=settings.fallback_delay_step,
        )

        logger.info(
            f"LedgerIntegrityService initialized: network={settings.network}, "
            f"auto_fund={settings.auto_fund}"
        )

    # Identity

    def generate_identity(self) -> Identity:
        return self.provisioner.generate()

    def validate_identity(self, identity: object) -> bool:
        return self.provisioner.validate(identity)

    # Funding

    async def ensure_funded(self, address: str, minimum_balance: int | None = None) -> bool:
        if minimum_balance is None:
            minimum_balance = self.settings.minimum_balance_microalgos
        return await self.funding.ensure_funded(address, minimum_balance)

    async def get_balance(self, address: str) -> int:
        """Balance in microAlgos."""
        return await self.funding.get_balance(address)

    # Commitment / verification

    async def commit_fingerprint(self, identity: Identity, fingerprint: str) -> Commitment:
        return await self.commitments.commit(identity, fingerprint)

    async def commit_record(
        self, identity: Identity, record: Mapping[str, Any]
    ) -> Commitment:
        """Fingerprint a record and commit the fingerprint."""
        return await self.commitments.commit(
            identity, create_health_data_fingerprint(record)
        )

    async def verify_fingerprint(
        self, fingerprint: str, transaction_id: str
    ) -> VerificationOutcome:
        return await self.verifications.verify(fingerprint, transaction_id)

    async def verify_record(
        self, record: Mapping[str, Any], transaction_id: str
    ) -> VerificationOutcome:
        """Fingerprint a record and verify it against a commitment."""
        return await self.verifications.verify(
            create_health_data_fingerprint(record), transaction_id
        )

    # Network

    async def get_network_status(self) -> dict[str, Any] | None:
        """
        Get ledger node status.

        Returns:
            Status dict or None if the node is unreachable
        """
        try:
            status = await self.node_client.get_status()
        except Exception as e:
            logger.error(f"Failed to get network status: {e}")
            return None
        return {
            "network": self.settings.network,
            "last_round": status.get("last-round"),
            "catchup_time": status.get("catchup-time"),
            "version": status.get("last-version"),
        }

    async def test_connection(self) -> bool:
        """Whether the ledger node answers status requests."""
        return await self.get_network_status() is not None

    async def close(self) -> None:
        """Release HTTP sessions and the node executor."""
        await self.faucet_client.close()
        close = getattr(self.node_client, "close", None)
        if close is not None:
            await close()
        logger.debug("LedgerIntegrityService closed")
