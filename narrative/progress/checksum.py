"""Checksums for persisted JSON documents."""

from __future__ import annotations

import base64
import hashlib
import json

CHECKSUM_KEY = 'checksum'


def calculate_checksum(data: dict) -> str:
    """SHA-256 of the canonical JSON form, base64 encoded."""
    payload = {k: v for k, v in data.items() if k != CHECKSUM_KEY}
    json_str = json.dumps(payload, sort_keys=True, separators=(',', ':'))
    hash_bytes = hashlib.sha256(json_str.encode('utf-8')).digest()
    return base64.b64encode(hash_bytes).decode('ascii')


def verify_checksum(data: dict) -> bool:
    """
    Check a document against its embedded checksum.

    Documents without a checksum are accepted.
    """
    expected = data.get(CHECKSUM_KEY)
    if not expected:
        return True
    return calculate_checksum(data) == expected


def with_checksum(data: dict) -> dict:
    """Copy of ``data`` with its checksum added."""
    stamped = dict(data)
    stamped[CHECKSUM_KEY] = calculate_checksum(data)
    return stamped
