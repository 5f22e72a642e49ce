"""Integration tests for the ledger integrity service facade."""

import asyncio
import base64
from unittest.mock import AsyncMock

import pytest
from algosdk import encoding

from healthguard.config.settings import Settings
from healthguard.services.blockchain import LedgerIntegrityService
from healthguard.services.blockchain.models import TransactionInfo
from healthguard.utils.exceptions import CommitmentFailed, LedgerNodeError
from healthguard.utils.hashing import create_health_data_fingerprint

RECORD = {
    "name": "Jane Doe",
    "bloodType": "O-",
    "allergies": ["penicillin"],
    "medications": [{"name": "metformin", "dose": "500mg"}],
}


@pytest.fixture
def zero_delay_settings():
    """Settings with every delay at zero."""
    return Settings(
        network="testnet",
        faucet_settle_delay=0,
        commit_retry_base_delay=0,
        verify_fetch_delay=0,
        fallback_initial_delay=0,
        fallback_delay_step=0,
    )


@pytest.fixture
def ledger(mock_node_client):
    """
    In-memory ledger behind the mocked node client.

    Submitted transactions are decoded and served back by
    get_transaction_info, so commit and verify see the same note.
    """
    store: dict[str, TransactionInfo] = {}

    async def submit(signed: bytes) -> str:
        stx = encoding.msgpack_decode(base64.b64encode(signed).decode("ascii"))
        tx_id = stx.get_txid()
        note = base64.b64encode(stx.transaction.note).decode("ascii")
        store[tx_id] = TransactionInfo.from_response(
            tx_id, {"confirmed-round": 5000 + len(store), "txn": {"txn": {"note": note}}}
        )
        return tx_id

    async def wait(tx_id: str, max_rounds: int = 10) -> TransactionInfo:
        return store[tx_id]

    async def get_info(tx_id: str) -> TransactionInfo:
        if tx_id not in store:
            raise LedgerNodeError("transaction not found", status_code=404)
        return store[tx_id]

    mock_node_client.submit_transaction = AsyncMock(side_effect=submit)
    mock_node_client.wait_for_confirmation = AsyncMock(side_effect=wait)
    mock_node_client.get_transaction_info = AsyncMock(side_effect=get_info)
    return store


@pytest.fixture
def service(zero_delay_settings, mock_node_client, mock_faucet_client):
    return LedgerIntegrityService(
        zero_delay_settings,
        node_client=mock_node_client,
        faucet_client=mock_faucet_client,
    )


class TestLedgerIntegrityService:
    """End-to-end flows through the facade with a mocked ledger."""

    @pytest.mark.asyncio
    async def test_commit_then_verify_record(self, service, ledger):
        identity = service.generate_identity()

        commitment = await service.commit_record(identity, RECORD)
        outcome = await service.verify_record(RECORD, commitment.transaction_id)

        assert commitment.fingerprint == create_health_data_fingerprint(RECORD)
        assert commitment.confirmed_block >= 5000
        assert outcome.verified is True
        assert outcome.degraded is False

    @pytest.mark.asyncio
    async def test_tampered_record_not_verified(self, service, ledger):
        identity = service.generate_identity()
        commitment = await service.commit_record(identity, RECORD)

        tampered = {**RECORD, "bloodType": "AB+"}
        outcome = await service.verify_record(tampered, commitment.transaction_id)

        assert outcome.verified is False
        assert outcome.note_found is True

    @pytest.mark.asyncio
    async def test_verify_unknown_transaction(self, service, ledger):
        outcome = await service.verify_fingerprint("abc123", "UNKNOWNTX")

        assert outcome.verified is False
        assert outcome.confirmed is False

    @pytest.mark.asyncio
    async def test_commit_fingerprint(self, service, ledger, identity):
        commitment = await service.commit_fingerprint(identity, "abc123")

        assert commitment.fingerprint == "abc123"
        assert commitment.explorer_url.startswith("https://testnet.algoexplorer.io/tx/")

    @pytest.mark.asyncio
    async def test_commit_failure_surfaces_guidance(
        self, service, mock_node_client, identity
    ):
        mock_node_client.submit_transaction = AsyncMock(
            side_effect=LedgerNodeError("connection refused")
        )

        with pytest.raises(CommitmentFailed) as exc_info:
            await service.commit_fingerprint(identity, "abc123")

        assert exc_info.value.guidance

    @pytest.mark.asyncio
    async def test_ensure_funded_uses_configured_minimum(
        self, service, mock_node_client, mock_faucet_client, identity
    ):
        mock_node_client.get_balance = AsyncMock(return_value=100_000)

        assert await service.ensure_funded(identity.address) is True
        mock_faucet_client.request_funds.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_balance(self, service, identity):
        assert await service.get_balance(identity.address) == 200_000

    @pytest.mark.asyncio
    async def test_network_status(self, service):
        status = await service.get_network_status()

        assert status["network"] == "testnet"
        assert status["last_round"] == 1233
        assert await service.test_connection() is True

    @pytest.mark.asyncio
    async def test_network_status_failure(self, service, mock_node_client):
        mock_node_client.get_status = AsyncMock(side_effect=LedgerNodeError("down"))

        assert await service.get_network_status() is None
        assert await service.test_connection() is False

    def test_validate_identity(self, service, identity):
        assert service.validate_identity(identity)
        assert not service.validate_identity(object())

    @pytest.mark.asyncio
    async def test_close_releases_clients(self, service, mock_node_client, mock_faucet_client):
        await service.close()

        mock_faucet_client.close.assert_awaited_once()
        mock_node_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_concurrent_verifications(self, service, ledger):
        """Verifications for different transactions can run concurrently."""
        identity = service.generate_identity()
        first = await service.commit_fingerprint(identity, "a" * 64)
        second = await service.commit_fingerprint(identity, "b" * 64)

        outcomes = await asyncio.gather(
            service.verify_fingerprint("a" * 64, first.transaction_id),
            service.verify_fingerprint("b" * 64, second.transaction_id),
        )

        assert [o.verified for o in outcomes] == [True, True]
