"""
Payment identifier generation.

A payment hash is SHA-256 of a fresh 32-byte preimage from the OS CSPRNG,
hex encoded. 256 bits of randomness makes collisions negligible; the store
still refuses duplicates. The preimage is not kept: settlement is decided by
the verifier, never by revealing it.
"""

import hashlib
import secrets
from uuid import uuid4

PREIMAGE_BYTES = 32


def new_payment_hash() -> str:
    """SHA-256 of a fresh random preimage, lowercase hex."""
    return hashlib.sha256(secrets.token_bytes(PREIMAGE_BYTES)).hexdigest()


def new_record_id() -> str:
    """Identifier for ledger records, unrelated to the payment hash."""
    return str(uuid4())


def is_payment_hash(value: str) -> bool:
    """Whether value looks like a hex-encoded SHA-256 digest."""
    if len(value) != 64:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return True
