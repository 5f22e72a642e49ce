"""
Ledger integrity services module.

Commits health-record fingerprints to the Algorand ledger and verifies
them later. The components are independent and take their clients as
constructor arguments; LedgerIntegrityService wires them from Settings.
"""

from .commitment_service import CommitmentService
from .explorer import ExplorerLinks
from .faucet_client import FaucetClient
from .funding_coordinator import FundingCoordinator
from .identity_provisioner import IdentityProvisioner
from .models import (
    AccountInfo,
    Commitment,
    FaucetEndpoint,
    Identity,
    NoteMetadata,
    TransactionInfo,
    VerificationOutcome,
)
from .node_client import AlgodNodeClient, LedgerNodeClient
from .note_codec import NoteCodec
from .service_facade import LedgerIntegrityService
from .verification_service import VerificationService


__all__ = [
    "LedgerIntegrityService",
    "IdentityProvisioner",
    "FundingCoordinator",
    "NoteCodec",
    "CommitmentService",
    "VerificationService",
    "AlgodNodeClient",
    "LedgerNodeClient",
    "FaucetClient",
    "ExplorerLinks",
    "AccountInfo",
    "Commitment",
    "FaucetEndpoint",
    "Identity",
    "NoteMetadata",
    "TransactionInfo",
    "VerificationOutcome",
]
