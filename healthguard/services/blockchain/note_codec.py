"""
Note field codec.

A note carries up to three independently decodable serializations of the
same fingerprint, richest first:

    {"kind":"HEALTH_DATA","fingerprint":...}|||HEALTH_DATA:<fp>|||HG_<fp>

Older notes used a single "|" separator, a "type"/"hash" key spelling, or
only one of the flat formats; all of them still match.
"""

import json
import re
from typing import Any

from loguru import logger

from healthguard.utils.exceptions import NoteEncodingError
from healthguard.utils.security import mask_fingerprint

from .core_constants import (
    LEGACY_NOTE_PREFIX,
    LEGACY_NOTE_SEPARATOR,
    MAX_NOTE_BYTES,
    MINIMAL_NOTE_PREFIX,
    NOTE_FINGERPRINT_KEYS,
    NOTE_KIND,
    NOTE_KIND_KEYS,
    NOTE_SEPARATOR,
    NOTE_SOFT_LIMIT_BYTES,
)
from .models import NoteMetadata

# Fingerprint characters; a contained match must not be glued to more of them
_WORD_CHARS = "0-9A-Za-z"


class NoteCodec:
    """Encodes fingerprints into note payloads and matches payloads back."""

    def __init__(
        self,
        soft_limit: int = NOTE_SOFT_LIMIT_BYTES,
        max_bytes: int = MAX_NOTE_BYTES,
    ) -> None:
        self.soft_limit = soft_limit
        self.max_bytes = max_bytes

    # Encoding

    def encode(self, fingerprint: str, metadata: NoteMetadata | None = None) -> bytes:
        """
        Encode a fingerprint into a note payload.

        Lower-priority formats are dropped while the payload exceeds the
        soft limit; the structured format is always kept.

        Args:
            fingerprint: Fingerprint to embed
            metadata: Structured-format metadata (defaults to now)

        Returns:
            UTF-8 note bytes

        Raises:
            NoteEncodingError: If the fingerprint is empty, contains the
                separator character, or cannot fit in a note
        """
        self._check_fingerprint(fingerprint)
        metadata = metadata or NoteMetadata.now()

        formats = [
            self.structured_format(fingerprint, metadata),
            f"{LEGACY_NOTE_PREFIX}{fingerprint}",
            f"{MINIMAL_NOTE_PREFIX}{fingerprint}",
        ]
        payload = NOTE_SEPARATOR.join(formats).encode("utf-8")

        while len(payload) > self.soft_limit and len(formats) > 1:
            dropped = formats.pop()
            logger.debug(f"Note over {self.soft_limit} bytes, dropping format {dropped[:12]!r}")
            payload = NOTE_SEPARATOR.join(formats).encode("utf-8")

        if len(payload) > self.max_bytes:
            raise NoteEncodingError(
                f"Note is {len(payload)} bytes, ledger limit is {self.max_bytes}"
            )

        logger.debug(
            f"Encoded note for {mask_fingerprint(fingerprint)}: "
            f"{len(formats)} format(s), {len(payload)} bytes"
        )
        return payload

    @staticmethod
    def structured_format(fingerprint: str, metadata: NoteMetadata) -> str:
        """Self-describing JSON record for a fingerprint."""
        record = {
            "kind": NOTE_KIND,
            "fingerprint": fingerprint,
            "createdAtMillis": metadata.created_at_millis,
            "formatVersion": metadata.format_version,
            "app": metadata.app,
        }
        return json.dumps(record, separators=(",", ":"), ensure_ascii=False)

    @staticmethod
    def _check_fingerprint(fingerprint: str) -> None:
        if not isinstance(fingerprint, str) or not fingerprint.strip():
            raise NoteEncodingError("Fingerprint must be a non-empty string")
        # Segments are whitespace-trimmed when matched
        if fingerprint != fingerprint.strip():
            raise NoteEncodingError("Fingerprint must not start or end with whitespace")
        if LEGACY_NOTE_SEPARATOR in fingerprint:
            raise NoteEncodingError(
                f"Fingerprint must not contain {LEGACY_NOTE_SEPARATOR!r}"
            )

    # Decoding

    @staticmethod
    def to_text(payload: bytes | str) -> str:
        if isinstance(payload, str):
            return payload
        return bytes(payload).decode("utf-8", errors="replace")

    @classmethod
    def split_segments(cls, payload: bytes | str) -> list[str]:
        """Split a note into its format segments."""
        text = cls.to_text(payload)
        if NOTE_SEPARATOR in text:
            parts = text.split(NOTE_SEPARATOR)
        elif LEGACY_NOTE_SEPARATOR in text:
            parts = text.split(LEGACY_NOTE_SEPARATOR)
        else:
            parts = [text]
        return [part.strip() for part in parts if part.strip()]

    def matches(self, payload: bytes | str, expected_fingerprint: str) -> bool:
        """
        Check whether a note carries the expected fingerprint.

        Each segment is tried as the structured format, then the legacy and
        minimal prefixed formats, then raw containment of the fingerprint.

        Args:
            payload: Note bytes (or already decoded text)
            expected_fingerprint: Fingerprint to look for

        Returns:
            True if any segment matches
        """
        if not expected_fingerprint:
            return False

        for segment in self.split_segments(payload):
            if self._segment_matches(segment, expected_fingerprint):
                return True
        return False

    def _segment_matches(self, segment: str, expected: str) -> bool:
        structured = self.parse_structured(segment)
        if structured is not None:
            return structured == expected

        for prefix in (LEGACY_NOTE_PREFIX, MINIMAL_NOTE_PREFIX):
            if segment.startswith(prefix):
                return segment[len(prefix):].strip() == expected

        return contains_fingerprint(segment, expected)

    @staticmethod
    def parse_structured(segment: str) -> str | None:
        """
        Fingerprint of a structured segment.

        Returns:
            The embedded fingerprint, or None if the segment is not a
            structured health-data record
        """
        if not segment.startswith("{"):
            return None
        try:
            record: Any = json.loads(segment)
        except ValueError:
            return None
        if not isinstance(record, dict):
            return None

        kind = next((record[k] for k in NOTE_KIND_KEYS if k in record), None)
        if kind != NOTE_KIND:
            return None
        fingerprint = next(
            (record[k] for k in NOTE_FINGERPRINT_KEYS if k in record), None
        )
        return fingerprint if isinstance(fingerprint, str) else None


def contains_fingerprint(text: str, fingerprint: str) -> bool:
    """Whether the fingerprint appears in text as a whole token."""
    if not fingerprint:
        return False
    pattern = rf"(?<![{_WORD_CHARS}]){re.escape(fingerprint)}(?![{_WORD_CHARS}])"
    return re.search(pattern, text) is not None
