"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment so Settings never reaches a real node
os.environ.setdefault("NETWORK", "testnet")
os.environ.setdefault("ALGOD_SERVER", "http://localhost")
os.environ.setdefault("ALGOD_PORT", "4001")
os.environ.setdefault("ALGOD_TOKEN", "a" * 64)
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import AsyncMock

from algosdk import account
from algosdk.transaction import SuggestedParams

from healthguard.services.blockchain.models import Identity, TransactionInfo

# Testnet genesis hash
TESTNET_GENESIS_HASH = "SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI="


@pytest.fixture
def identity():
    """Freshly generated valid identity (offline)."""
    private_key, _address = account.generate_account()
    return Identity.from_algosdk_key(private_key)


@pytest.fixture
def sample_fingerprint():
    """Sample fingerprint for testing."""
    return "abc123"


@pytest.fixture
def sample_transaction_id():
    """Sample 52-character transaction id."""
    return "OLQXUZDBG6RF7MNUYPJNXQ3NBTHLO6VSGMYQVDFHBQ4DKQ2FEHJA"


@pytest.fixture
def suggested_params():
    """Real suggested params so transactions can be built and signed."""
    return SuggestedParams(
        fee=1000,
        first=1000,
        last=2000,
        gh=TESTNET_GENESIS_HASH,
        gen="testnet-v1.0",
        flat_fee=True,
    )


@pytest.fixture
def make_tx_info():
    """
    Factory for TransactionInfo shaped like an algod pending-transaction response.

    Pass note=None for a response without a note field.
    """

    def _make(
        transaction_id: str,
        note: str | None = None,
        confirmed_round: int | None = 1234,
    ) -> TransactionInfo:
        inner = {"type": "pay", "amt": 0}
        if note is not None:
            inner["note"] = note
        payload = {"txn": {"sig": "c2ln", "txn": inner}, "pool-error": ""}
        if confirmed_round:
            payload["confirmed-round"] = confirmed_round
        return TransactionInfo.from_response(transaction_id, payload)

    return _make


@pytest.fixture
def mock_node_client(suggested_params, sample_transaction_id, make_tx_info):
    """Mock LedgerNodeClient: funded account, submit and confirm succeed."""
    client = AsyncMock()
    client.get_status = AsyncMock(return_value={"last-round": 1233, "last-version": "v1"})
    client.get_transaction_params = AsyncMock(return_value=suggested_params)
    client.get_balance = AsyncMock(return_value=200_000)
    client.submit_transaction = AsyncMock(return_value=sample_transaction_id)
    client.wait_for_confirmation = AsyncMock(
        return_value=make_tx_info(sample_transaction_id)
    )
    client.get_transaction_info = AsyncMock(
        return_value=make_tx_info(sample_transaction_id)
    )
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_faucet_client():
    """Mock FaucetClient that accepts every request."""
    client = AsyncMock()
    client.request_funds = AsyncMock(return_value=None)
    client.close = AsyncMock()
    return client
