"""
SHA-256 helpers for the audit chain and for tax-rule checksums.

Payloads are hashed in a canonical JSON form (sorted keys, no whitespace,
Decimals in plain notation without trailing zeros), so a payload stored
as JSON and read back hashes to the same value it had when written.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

GENESIS_MARKER = "GENESIS"


def _encode(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        # 62.00 and 62.000000000 (as reloaded from Numeric(38, 9)) agree
        return format(obj.normalize(), "f")
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    raise TypeError(f"{type(obj).__name__} has no canonical JSON form")


def canonicalize_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=_encode)


def sha256_hex(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hash_payload(payload: dict) -> str:
    return sha256_hex(canonicalize_json(payload))


def hash_audit_event(
    entity_type: str,
    entity_id: str,
    action: str,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """Chain link: covers the event's identity, its payload hash and the previous link."""
    return sha256_hex("|".join((entity_type, entity_id, action, payload_hash,
                                prev_hash or GENESIS_MARKER)))
