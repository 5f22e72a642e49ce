"""
Services.

Business logic layer.
"""

from healthguard.services.blockchain import (
    Commitment,
    Identity,
    LedgerIntegrityService,
    VerificationOutcome,
)


__all__ = [
    "LedgerIntegrityService",
    "Commitment",
    "Identity",
    "VerificationOutcome",
]
