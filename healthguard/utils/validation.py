"""Ledger address and key validation utilities."""

from algosdk import encoding

# Algorand addresses are 58 base32 characters (32-byte key + 4-byte checksum)
ALGORAND_ADDRESS_LENGTH = 58
_BASE32_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")
# ed25519 secret key (32-byte seed) followed by the 32-byte public key
PRIVATE_KEY_LENGTH = 64


def validate_algorand_address(address: object, checksum: bool = True) -> bool:
    """
    Validate Algorand address format.

    Args:
        address: Address to validate
        checksum: Also verify the base32 checksum

    Returns:
        True if address is valid
    """
    if not isinstance(address, str):
        return False
    if len(address) != ALGORAND_ADDRESS_LENGTH:
        return False
    if not checksum:
        return set(address) <= _BASE32_ALPHABET
    return encoding.is_valid_address(address)


def validate_private_key(private_key: object) -> bool:
    """
    Validate private key shape (64 raw bytes).

    Args:
        private_key: Candidate private key

    Returns:
        True if private key is a 64-byte sequence
    """
    return (
        isinstance(private_key, (bytes, bytearray))
        and len(private_key) == PRIVATE_KEY_LENGTH
    )
