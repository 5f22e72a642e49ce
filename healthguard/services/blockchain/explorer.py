"""Block explorer URL builder."""

from .core_constants import MAINNET_EXPLORER_URL, TESTNET_EXPLORER_URL


class ExplorerLinks:
    """
    Builds block explorer links for a network.

    An explicit base URL takes precedence over the network default.
    """

    def __init__(self, network: str = "testnet", base_url: str | None = None) -> None:
        if base_url:
            self.base_url = base_url.rstrip("/")
        elif network == "mainnet":
            self.base_url = MAINNET_EXPLORER_URL
        else:
            self.base_url = TESTNET_EXPLORER_URL

    def transaction(self, transaction_id: str) -> str:
        return f"{self.base_url}/tx/{transaction_id}"

    def address(self, address: str) -> str:
        return f"{self.base_url}/address/{address}"

    def application(self, app_id: int) -> str:
        return f"{self.base_url}/application/{app_id}"
