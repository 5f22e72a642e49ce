"""Unit tests for the funding coordinator."""

from unittest.mock import AsyncMock

import pytest

from healthguard.services.blockchain.core_constants import MANUAL_FUNDING_URLS
from healthguard.services.blockchain.funding_coordinator import FundingCoordinator
from healthguard.utils.exceptions import FaucetRequestError, FundingUnavailable, LedgerNodeError

MINIMUM = 100_000


class TestEnsureFunded:
    """Tests for FundingCoordinator.ensure_funded."""

    @pytest.mark.asyncio
    async def test_already_funded_short_circuits(
        self, funding, mock_node_client, mock_faucet_client, identity
    ):
        """No faucet is called when the balance already clears the minimum."""
        mock_node_client.get_balance = AsyncMock(return_value=MINIMUM)

        assert await funding.ensure_funded(identity.address, MINIMUM) is True
        mock_faucet_client.request_funds.assert_not_called()

    @pytest.mark.asyncio
    async def test_funded_after_one_faucet(
        self, funding, mock_node_client, mock_faucet_client, identity, faucets
    ):
        """Balance 0, first faucet succeeds, balance 150000 after the settle delay."""
        mock_node_client.get_balance = AsyncMock(side_effect=[0, 150_000])

        assert await funding.ensure_funded(identity.address, MINIMUM) is True
        mock_faucet_client.request_funds.assert_called_once_with(faucets[0], identity.address)

    @pytest.mark.asyncio
    async def test_faucet_error_moves_to_next(
        self, funding, mock_node_client, mock_faucet_client, identity, faucets
    ):
        """A failing faucet is logged and skipped."""
        mock_node_client.get_balance = AsyncMock(side_effect=[0, 150_000])
        mock_faucet_client.request_funds = AsyncMock(
            side_effect=[FaucetRequestError("Faucet A", "HTTP 503", status=503), None]
        )

        assert await funding.ensure_funded(identity.address, MINIMUM) is True
        assert mock_faucet_client.request_funds.call_count == 2
        assert mock_faucet_client.request_funds.call_args.args[0] == faucets[1]

    @pytest.mark.asyncio
    async def test_all_faucets_exhausted_returns_false(
        self, funding, mock_node_client, mock_faucet_client, identity
    ):
        """Acknowledged requests that never move the balance end in False, not an error."""
        mock_node_client.get_balance = AsyncMock(return_value=0)

        assert await funding.ensure_funded(identity.address, MINIMUM) is False
        assert mock_faucet_client.request_funds.call_count == 2

    @pytest.mark.asyncio
    async def test_all_faucets_fail_returns_false(
        self, funding, mock_node_client, mock_faucet_client, identity
    ):
        mock_node_client.get_balance = AsyncMock(return_value=0)
        mock_faucet_client.request_funds = AsyncMock(
            side_effect=FaucetRequestError("Faucet", "request failed")
        )

        assert await funding.ensure_funded(identity.address, MINIMUM) is False

    @pytest.mark.asyncio
    async def test_balance_check_retried(
        self, funding, mock_node_client, mock_faucet_client, identity
    ):
        """A transient node error on the balance check is retried."""
        mock_node_client.get_balance = AsyncMock(
            side_effect=[LedgerNodeError("node busy", status_code=503), 200_000]
        )

        assert await funding.ensure_funded(identity.address, MINIMUM) is True
        mock_faucet_client.request_funds.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreadable_balance_returns_false(
        self, funding, mock_node_client, mock_faucet_client, identity
    ):
        """Without a balance no faucet is asked."""
        mock_node_client.get_balance = AsyncMock(side_effect=LedgerNodeError("down"))

        assert await funding.ensure_funded(identity.address, MINIMUM) is False
        mock_faucet_client.request_funds.assert_not_called()

    @pytest.mark.asyncio
    async def test_post_faucet_balance_error_tries_next(
        self, funding, mock_node_client, mock_faucet_client, identity
    ):
        mock_node_client.get_balance = AsyncMock(
            side_effect=[
                0,
                LedgerNodeError("down"),
                LedgerNodeError("down"),
                LedgerNodeError("down"),
                150_000,
            ]
        )

        assert await funding.ensure_funded(identity.address, MINIMUM) is True
        assert mock_faucet_client.request_funds.call_count == 2

    @pytest.mark.asyncio
    async def test_default_faucet_list(self, mock_node_client, mock_faucet_client):
        coordinator = FundingCoordinator(mock_node_client, mock_faucet_client)
        assert len(coordinator.faucets) == 3
        assert coordinator.faucets[0].name == "Algorand Testnet Dispenser"


class TestRequireFunded:
    """Tests for FundingCoordinator.require_funded."""

    @pytest.mark.asyncio
    async def test_raises_with_manual_urls(self, funding, mock_node_client, identity):
        mock_node_client.get_balance = AsyncMock(return_value=0)

        with pytest.raises(FundingUnavailable) as exc_info:
            await funding.require_funded(identity.address, MINIMUM)

        assert exc_info.value.manual_funding_urls == list(MANUAL_FUNDING_URLS)
        assert exc_info.value.address == identity.address
        assert MANUAL_FUNDING_URLS[0] in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_passes_when_funded(self, funding, identity):
        await funding.require_funded(identity.address, MINIMUM)
