"""
Identity provisioner.

Creates ledger signing identities, trying several independent generation
strategies in order. There is no placeholder identity: when every strategy
fails the caller gets IdentityGenerationExhausted.
"""

import base64
import hashlib
import os
import platform
import secrets
import time
from collections.abc import Callable, Sequence

from algosdk import account, encoding, mnemonic
from loguru import logger
from nacl.signing import SigningKey
from nacl.utils import random as nacl_random

from healthguard.utils.exceptions import IdentityGenerationExhausted, InvalidIdentity
from healthguard.utils.security import mask_address
from healthguard.utils.validation import validate_algorand_address, validate_private_key

from .models import Identity

IdentityStrategy = Callable[[], Identity]


def generate_keypair() -> Identity:
    """Direct ed25519 key pair generation."""
    private_key, _address = account.generate_account()
    return Identity.from_algosdk_key(private_key, mnemonic.from_private_key(private_key))


def generate_from_mnemonic() -> Identity:
    """Random 25-word phrase converted to a key pair."""
    entropy = base64.b64encode(secrets.token_bytes(32)).decode("ascii")
    words = mnemonic.from_master_derivation_key(entropy)
    return Identity.from_algosdk_key(mnemonic.to_private_key(words), words)


def generate_from_random_bytes() -> Identity:
    """Key pair built by hand from a libsodium random seed."""
    signing_key = SigningKey(nacl_random(32))
    verify_key = bytes(signing_key.verify_key)
    private_key = bytes(signing_key) + verify_key
    return Identity(
        address=encoding.encode_address(verify_key),
        private_key=private_key,
        mnemonic=mnemonic.from_private_key(base64.b64encode(private_key).decode("ascii")),
    )


def generate_from_time_seed() -> Identity:
    """Seed hashed from wall-clock time and platform identifiers."""
    source = f"{time.time_ns()}-{os.getpid()}-{platform.system()}-{platform.node()}"
    seed = hashlib.sha256(source.encode("utf-8")).digest()
    words = mnemonic.from_master_derivation_key(base64.b64encode(seed).decode("ascii"))
    return Identity.from_algosdk_key(mnemonic.to_private_key(words), words)


DEFAULT_STRATEGIES: tuple[tuple[str, IdentityStrategy], ...] = (
    ("keypair", generate_keypair),
    ("mnemonic", generate_from_mnemonic),
    ("random_bytes", generate_from_random_bytes),
    ("time_seed", generate_from_time_seed),
)


class IdentityProvisioner:
    """Generates and validates ledger signing identities."""

    def __init__(
        self, strategies: Sequence[tuple[str, IdentityStrategy]] | None = None
    ) -> None:
        self.strategies = list(DEFAULT_STRATEGIES if strategies is None else strategies)

    def generate(self) -> Identity:
        """
        Generate a new identity.

        Returns:
            First identity produced by a strategy that passes validation

        Raises:
            IdentityGenerationExhausted: If every strategy fails
        """
        failures: list[str] = []

        for name, strategy in self.strategies:
            try:
                candidate = strategy()
            except Exception as e:
                logger.warning(f"Identity strategy '{name}' failed: {e}")
                failures.append(f"{name}: {e}")
                continue

            if not self.validate(candidate):
                logger.warning(f"Identity strategy '{name}' produced an invalid identity")
                failures.append(f"{name}: invalid identity")
                continue

            logger.info(f"Generated identity {mask_address(candidate.address)} via '{name}'")
            return candidate

        logger.error(f"All {len(self.strategies)} identity strategies failed")
        raise IdentityGenerationExhausted(failures)

    @staticmethod
    def validate(candidate: object) -> bool:
        """
        Check an identity's address and key shape.

        Args:
            candidate: Identity (or any object with address/private_key)

        Returns:
            True if the address is a checksummed 58-character address and
            the private key is 64 bytes
        """
        address = getattr(candidate, "address", None)
        private_key = getattr(candidate, "private_key", None)
        return validate_algorand_address(address) and validate_private_key(private_key)

    def require_valid(self, candidate: object) -> None:
        """
        Raise if an identity is invalid.

        Raises:
            InvalidIdentity: If validation fails
        """
        if not self.validate(candidate):
            address = getattr(candidate, "address", None)
            shown = mask_address(address) if isinstance(address, str) else repr(address)
            raise InvalidIdentity(f"Invalid ledger identity: {shown}")
