"""
Shared fixtures for unit tests.

This module provides the integrity components wired to mocked clients
with all retry delays set to zero.
"""

import pytest

from healthguard.services.blockchain.commitment_service import CommitmentService
from healthguard.services.blockchain.funding_coordinator import FundingCoordinator
from healthguard.services.blockchain.models import FaucetEndpoint
from healthguard.services.blockchain.note_codec import NoteCodec
from healthguard.services.blockchain.verification_service import VerificationService


@pytest.fixture
def codec():
    return NoteCodec()


@pytest.fixture
def faucets():
    """Two test faucets, tried in order."""
    return [
        FaucetEndpoint(name="Faucet A", url="https://faucet-a.test/"),
        FaucetEndpoint(name="Faucet B", url="https://faucet-b.test/", payload_format="json"),
    ]


@pytest.fixture
def funding(mock_node_client, mock_faucet_client, faucets):
    """
    FundingCoordinator with zero delays.

    Args:
        mock_node_client: Mocked node client
        mock_faucet_client: Mocked faucet client
        faucets: Faucet list

    Returns:
        FundingCoordinator: Coordinator instance for testing
    """
    return FundingCoordinator(
        mock_node_client,
        mock_faucet_client,
        faucets=faucets,
        settle_delay=0,
        balance_check_delay=0,
    )


@pytest.fixture
def commitment_service(mock_node_client, funding):
    """CommitmentService with zero delays."""
    return CommitmentService(
        mock_node_client,
        funding,
        retry_base_delay=0,
        params_retry_delay=0,
    )


@pytest.fixture
def verification_service(mock_node_client):
    """VerificationService with zero delays."""
    return VerificationService(
        mock_node_client,
        fetch_delay=0,
        fallback_initial_delay=0,
        fallback_delay_step=0,
    )
