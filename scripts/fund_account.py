#!/usr/bin/env python3
"""
Request testnet funds for an address.

Generates a new identity unless an address is given, then asks the
configured faucets for funds. The recovery phrase of a generated identity
is printed only with --show-mnemonic.

Usage:
    python scripts/fund_account.py
    python scripts/fund_account.py --show-mnemonic
    python scripts/fund_account.py <ALGORAND_ADDRESS> --minimum 200000
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
from healthguard.utils.exceptions import LedgerError
from healthguard.utils.logging import setup_logging
from healthguard.utils.security import mask_private_key
from healthguard.utils.validation import validate_algorand_address


async def fund_account(
    address: str | None, minimum_balance: int, show_mnemonic: bool = False
) -> bool:
    """
    Fund an address up to the minimum balance.

    Args:
        address: Address to fund, or None to generate a new identity
        minimum_balance: Target balance in microAlgos
        show_mnemonic: Print the recovery phrase of a generated identity

    Returns:
        True if the address holds at least the minimum balance
    """
    service = LedgerIntegrityService(settings)
    try:
        if address is None:
            identity = service.generate_identity()
            address = identity.address
            logger.success(f"Generated identity: {address}")
            logger.info(f"Recovery phrase: {mask_private_key(identity.mnemonic)}")
            if show_mnemonic:
                # stdout only, never a log sink
                print(f"Recovery phrase: {identity.mnemonic}")

        try:
            initial = await service.get_balance(address)
        except LedgerError as e:
            logger.error(f"Balance check failed: {e}")
            return False
        logger.info(f"Initial balance: {initial / MICROALGOS_PER_ALGO:.6f} ALGO")

        funded = await service.ensure_funded(address, minimum_balance)

        try:
            final = await service.get_balance(address)
            logger.info(f"Final balance: {final / MICROALGOS_PER_ALGO:.6f} ALGO")
        except LedgerError as e:
            logger.warning(f"Final balance check failed: {e}")

        if funded:
            logger.success(f"Account funded: {service.explorer.address(address)}")
        else:
            logger.error("Automatic funding failed. Fund the account manually at:")
            for url in MANUAL_FUNDING_URLS:
                logger.error(f"  {url}")
        return funded
    finally:
        await service.close()


def main():
    parser = argparse.ArgumentParser(description="Request testnet funds for an address")
    parser.add_argument("address", nargs="?", help="Address to fund (default: new identity)")
    parser.add_argument(
        "--minimum",
        type=int,
        default=settings.minimum_balance_microalgos,
        help="Target balance in microAlgos",
    )
    parser.add_argument(
        "--show-mnemonic",
        action="store_true",
        help="Print the recovery phrase of a generated identity",
    )
    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_file)

    if not settings.is_testnet:
        logger.error(f"Faucets only exist on testnet (configured: {settings.network})")
        sys.exit(1)

    if args.address and not validate_algorand_address(args.address):
        logger.error(f"Invalid Algorand address: {args.address}")
        sys.exit(1)

    ok = asyncio.run(fund_account(args.address, args.minimum, args.show_mnemonic))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
