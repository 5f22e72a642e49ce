"""
Security utilities for masking sensitive data in logs.

Provides functions to safely mask sensitive information like:
- Ledger addresses
- Transaction ids
- Fingerprints
- Private keys and mnemonics
"""


def mask_address(address: str | None) -> str:
    """
    Mask ledger address for logging: ABCDEF...WXYZ

    Args:
        address: Ledger address to mask

    Returns:
        Masked address showing first 6 and last 4 characters

    Examples:
        >>> mask_address("HZ57J3K46JIJXILONBBZOHX6BKPXEM2VVXNRFSUED6DKFD5ZD24PMJ3MVA")
        'HZ57J3...3MVA'
        >>> mask_address(None)
        '***'
        >>> mask_address("short")
        '***'
    """
    if not address or len(address) < 10:
        return "***"
    return f"{address[:6]}...{address[-4:]}"


def mask_tx_id(tx_id: str | None) -> str:
    """
    Mask transaction id for logging.

    Args:
        tx_id: Transaction id to mask

    Returns:
        Masked id showing first 8 and last 6 characters
    """
    if not tx_id or len(tx_id) < 16:
        return "***"
    return f"{tx_id[:8]}...{tx_id[-6:]}"


def mask_fingerprint(fingerprint: str | None) -> str:
    """
    Shorten a fingerprint for logging (first 16 characters).

    Args:
        fingerprint: Fingerprint to shorten

    Returns:
        Prefix followed by an ellipsis, or the value itself if short
    """
    if not fingerprint:
        return "***"
    if len(fingerprint) <= 16:
        return fingerprint
    return f"{fingerprint[:16]}..."


def mask_private_key(key: bytes | str | None) -> str:
    """
    Completely mask private key or mnemonic - never show any part.

    Args:
        key: Private key or mnemonic to mask

    Returns:
        Always returns '***MASKED***'

    Note:
        Private keys should NEVER appear in logs, even partially.
    """
    return "***MASKED***" if key else "***"
