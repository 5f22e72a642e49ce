#!/usr/bin/env python3
"""
Ledger network smoke check.

This script:
1. Connects to the configured algod node and prints its status
2. Generates a throwaway identity
3. Reads the identity's balance
4. Prints manual funding pages for testnet

Usage:
    python scripts/check_network.py
    python scripts/check_network.py --address <ALGORAND_ADDRESS>
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from healthguard.config.constants import MICROALGOS_PER_ALGO
from healthguard.config.settings import settings
from healthguard.services.blockchain import LedgerIntegrityService
from healthguard.services.blockchain.core_constants import MANUAL_FUNDING_URLS
from healthguard.utils.exceptions import IdentityGenerationExhausted, LedgerError
from healthguard.utils.logging import setup_logging
from healthguard.utils.validation import validate_algorand_address


async def check_network(address: str | None = None) -> bool:
    """
    Run the network checks.

    Args:
        address: Existing address to inspect instead of a generated one

    Returns:
        True if every check passed
    """
    service = LedgerIntegrityService(settings)
    try:
        logger.info(f"Network: {settings.network} ({settings.algod_server})")

        status = await service.get_network_status()
        if status is None:
            logger.error("Cannot reach the ledger node")
            return False
        logger.success(f"Connected, last round: {status['last_round']}")

        if address is None:
            try:
                identity = service.generate_identity()
            except IdentityGenerationExhausted as e:
                logger.error(f"Identity generation failed: {e}")
                return False
            address = identity.address
            logger.success(f"Generated identity: {address}")

        try:
            balance = await service.get_balance(address)
        except LedgerError as e:
            logger.error(f"Balance check failed: {e}")
            return False
        logger.info(f"Balance: {balance / MICROALGOS_PER_ALGO:.6f} ALGO")
        logger.info(f"Explorer: {service.explorer.address(address)}")

        if settings.is_testnet:
            logger.info("Fund testnet accounts manually at:")
            for url in MANUAL_FUNDING_URLS:
                logger.info(f"  {url}")

        return True
    finally:
        await service.close()


def main():
    parser = argparse.ArgumentParser(description="Check ledger node connectivity")
    parser.add_argument(
        "--address",
        help="Inspect this address instead of generating a new identity",
    )
    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_file)

    if args.address and not validate_algorand_address(args.address):
        logger.error(f"Invalid Algorand address: {args.address}")
        sys.exit(1)

    ok = asyncio.run(check_network(args.address))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
