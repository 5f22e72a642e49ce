"""
Record fingerprinting.

A fingerprint is the SHA-256 digest (lowercase hex) of a record serialized
as canonical JSON: sorted keys, no whitespace, UTF-8.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from loguru import logger

from healthguard.utils.security import mask_fingerprint


def canonical_json(record: Mapping[str, Any]) -> bytes:
    """
    Serialize a record to canonical JSON bytes.

    Raises:
        TypeError: If the record contains values JSON cannot represent
    """
    return json.dumps(
        record,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def create_health_data_fingerprint(record: Mapping[str, Any]) -> str:
    """
    Create the fingerprint of a health data record.

    Args:
        record: Structured record (nested mappings and lists allowed)

    Returns:
        64-character lowercase hex SHA-256 digest
    """
    fingerprint = hashlib.sha256(canonical_json(record)).hexdigest()
    logger.debug(f"Health data fingerprint created: {mask_fingerprint(fingerprint)}")
    return fingerprint
