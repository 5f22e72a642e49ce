"""Unit tests for record fingerprinting."""

import hashlib

import pytest

from healthguard.utils.hashing import canonical_json, create_health_data_fingerprint

RECORD = {
    "name": "Jane Doe",
    "bloodType": "O-",
    "allergies": ["penicillin", "latex"],
    "emergencyContact": {"name": "John Doe", "phone": "+1-555-0100"},
}


class TestCanonicalJson:
    """Tests for canonical record serialization."""

    def test_sorted_keys_compact(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'

    def test_unicode_kept(self):
        assert canonical_json({"name": "Zoë"}) == '{"name":"Zoë"}'.encode("utf-8")


class TestFingerprint:
    """Tests for create_health_data_fingerprint."""

    def test_is_sha256_hex(self):
        fingerprint = create_health_data_fingerprint(RECORD)

        assert len(fingerprint) == 64
        assert fingerprint == hashlib.sha256(canonical_json(RECORD)).hexdigest()

    def test_deterministic(self):
        assert create_health_data_fingerprint(RECORD) == create_health_data_fingerprint(dict(RECORD))

    def test_key_order_irrelevant(self):
        reordered = dict(reversed(list(RECORD.items())))
        assert create_health_data_fingerprint(reordered) == create_health_data_fingerprint(RECORD)

    def test_different_records_differ(self):
        changed = {**RECORD, "bloodType": "A+"}
        assert create_health_data_fingerprint(changed) != create_health_data_fingerprint(RECORD)

    def test_empty_record(self):
        assert create_health_data_fingerprint({}) == hashlib.sha256(b"{}").hexdigest()

    def test_non_serializable_raises(self):
        with pytest.raises(TypeError):
            create_health_data_fingerprint({"when": object()})
