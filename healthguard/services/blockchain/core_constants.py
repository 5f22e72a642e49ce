"""
Core blockchain constants and configurations.

This module contains all ledger-related constants including:
- Note field formats, separators and size limits
- Default faucet endpoints for testnet funding
- Block explorer base URLs
"""

# Note field (Algorand caps the note at 1024 bytes)
MAX_NOTE_BYTES = 1024
NOTE_SOFT_LIMIT_BYTES = 1000  # Headroom under the ledger ceiling

NOTE_KIND = "HEALTH_DATA"
NOTE_FORMAT_VERSION = "1.0"
NOTE_APP_NAME = "HealthGuardian"

LEGACY_NOTE_PREFIX = f"{NOTE_KIND}:"
MINIMAL_NOTE_PREFIX = "HG_"

NOTE_SEPARATOR = "|||"
LEGACY_NOTE_SEPARATOR = "|"

# Structured note keys (current and pre-1.0 spellings)
NOTE_KIND_KEYS = ("kind", "type")
NOTE_FINGERPRINT_KEYS = ("fingerprint", "hash")

# Testnet faucets, tried in order
DEFAULT_FAUCETS = (
    {
        "name": "Algorand Testnet Dispenser",
        "url": "https://dispenser.testnet.aws.algodev.network/",
        "payload_format": "form",
    },
    {
        "name": "Algorand Bank",
        "url": "https://bank.testnet.algorand.network/",
        "payload_format": "form",
    },
    {
        "name": "AlgoExplorer Faucet",
        "url": "https://testnet.algoexplorerapi.io/v1/faucet",
        "payload_format": "json",
    },
)

# Pages a user can open to fund an address by hand
MANUAL_FUNDING_URLS = (
    "https://dispenser.testnet.aws.algodev.network/",
    "https://bank.testnet.algorand.network/",
)

# Block explorers
MAINNET_EXPLORER_URL = "https://algoexplorer.io"
TESTNET_EXPLORER_URL = "https://testnet.algoexplorer.io"
