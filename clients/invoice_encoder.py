"""
BOLT11 payment request encoder.

Builds and signs Lightning invoices: human-readable part with network prefix
and amount, 35-bit timestamp, tagged fields (payment hash, description,
expiry, min_final_cltv_expiry, payee node key) and a recoverable secp256k1
signature, all bech32 encoded.
"""

import hashlib
import logging
from datetime import datetime
from typing import List, Protocol

import bech32
from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.keys import MalformedPointError
from ecdsa.util import sigdecode_string, sigencode_string_canonize

from core.exceptions import EncodingError
from core.identifiers import is_payment_hash
from utils.timezone import now_utc, to_unix

logger = logging.getLogger(__name__)

NETWORK_PREFIXES = {
    "bitcoin": "lnbc",
    "testnet": "lntb",
    "signet": "lntbs",
    "regtest": "lnbcrt",
}

# Field type values are bech32 characters: p=1, d=13, x=6, c=24, n=19
TAG_PAYMENT_HASH = 1
TAG_DESCRIPTION = 13
TAG_EXPIRY = 6
TAG_MIN_FINAL_CLTV_EXPIRY = 24
TAG_PAYEE = 19

MAX_DESCRIPTION_BYTES = 639
MAX_TIMESTAMP = 2 ** 35 - 1

# Amount multipliers in pico-bitcoin, largest first
_MULTIPLIERS = [
    ("", 10 ** 12),
    ("m", 10 ** 9),
    ("u", 10 ** 6),
    ("n", 10 ** 3),
    ("p", 1),
]
_PICO_PER_SAT = 10 ** 4


class InvoiceEncoder(Protocol):
    """Builds the wire-format payment request for an invoice."""

    def encode(
        self,
        amount_sats: int,
        description: str,
        payment_hash: str,
        expiry_seconds: int,
        signing_key: bytes,
        timestamp: datetime | None = None,
        min_final_cltv_expiry: int = 144,
    ) -> str:
        ...


def encode_amount(amount_sats: int) -> str:
    """
    Shortest BOLT11 amount string for a satoshi amount.

    5000 sats is 50u, 150 sats is 1500n, 100 000 000 sats is 1.
    """
    pico = amount_sats * _PICO_PER_SAT
    for suffix, unit in _MULTIPLIERS:
        if pico % unit == 0:
            return f"{pico // unit}{suffix}"
    raise EncodingError(f"Cannot encode amount {amount_sats}")


def _int_to_words(value: int, length: int | None = None) -> List[int]:
    """Big-endian 5-bit words, zero padded on the left to length."""
    words = []
    while value > 0:
        words.append(value & 31)
        value >>= 5
    words.reverse()
    if length is not None:
        if len(words) > length:
            raise EncodingError(f"Value does not fit in {length} words")
        words = [0] * (length - len(words)) + words
    return words


def _bytes_to_words(data: bytes) -> List[int]:
    return bech32.convertbits(list(data), 8, 5, True)


def _tagged(tag: int, words: List[int]) -> List[int]:
    return [tag] + _int_to_words(len(words), 2) + words


class Bolt11Encoder:
    """
    Signs BOLT11 invoices for one network.

    Usage:
        encoder = Bolt11Encoder("bitcoin")
        bolt11 = encoder.encode(5000, "Donation", payment_hash, 3600, node_key)
    """

    def __init__(self, network: str = "bitcoin"):
        if network not in NETWORK_PREFIXES:
            raise ValueError(
                f"Unknown network '{network}'. Valid: {', '.join(sorted(NETWORK_PREFIXES))}"
            )
        self.network = network
        self.prefix = NETWORK_PREFIXES[network]

    def encode(
        self,
        amount_sats: int,
        description: str,
        payment_hash: str,
        expiry_seconds: int,
        signing_key: bytes,
        timestamp: datetime | None = None,
        min_final_cltv_expiry: int = 144,
    ) -> str:
        """
        Build and sign a payment request.

        Args:
            amount_sats: Amount in satoshis (> 0)
            description: Purpose shown to the payer (at most 639 UTF-8 bytes)
            payment_hash: Hex SHA-256 of the payment preimage
            expiry_seconds: Seconds after timestamp the invoice stays payable
            signing_key: 32-byte secp256k1 node secret
            timestamp: Creation time (defaults to now)
            min_final_cltv_expiry: Final hop CLTV delta

        Raises:
            EncodingError: On malformed input or signing failure
        """
        if amount_sats <= 0:
            raise EncodingError(f"Amount must be positive, got {amount_sats}")
        if not is_payment_hash(payment_hash):
            raise EncodingError(f"Malformed payment hash: {payment_hash!r}")
        if expiry_seconds <= 0:
            raise EncodingError(f"Expiry must be positive, got {expiry_seconds}")

        description_bytes = description.encode("utf-8")
        if len(description_bytes) > MAX_DESCRIPTION_BYTES:
            raise EncodingError(
                f"Description is {len(description_bytes)} bytes, max {MAX_DESCRIPTION_BYTES}"
            )

        try:
            key = SigningKey.from_string(signing_key, curve=SECP256k1)
        except (MalformedPointError, ValueError, TypeError) as e:
            raise EncodingError(f"Invalid signing key: {e}") from e

        unix_time = to_unix(timestamp or now_utc())
        if not 0 <= unix_time <= MAX_TIMESTAMP:
            raise EncodingError(f"Timestamp {unix_time} out of range")

        hrp = f"{self.prefix}{encode_amount(amount_sats)}"
        payee = key.get_verifying_key().to_string("compressed")

        data = _int_to_words(unix_time, 7)
        data += _tagged(TAG_PAYMENT_HASH, _bytes_to_words(bytes.fromhex(payment_hash)))
        data += _tagged(TAG_DESCRIPTION, _bytes_to_words(description_bytes))
        data += _tagged(TAG_EXPIRY, _int_to_words(expiry_seconds))
        data += _tagged(TAG_MIN_FINAL_CLTV_EXPIRY, _int_to_words(min_final_cltv_expiry))
        data += _tagged(TAG_PAYEE, _bytes_to_words(payee))

        signature = self._sign(key, hrp, data)
        return bech32.bech32_encode(hrp, data + _bytes_to_words(signature))

    @staticmethod
    def _sign(key: SigningKey, hrp: str, data: List[int]) -> bytes:
        """64-byte compact signature plus recovery id over sha256(hrp || data)."""
        message = hrp.encode("ascii") + bytes(bech32.convertbits(data, 5, 8, True))
        digest = hashlib.sha256(message).digest()

        signature = key.sign_digest_deterministic(
            digest,
            hashfunc=hashlib.sha256,
            sigencode=sigencode_string_canonize,
        )

        # Candidates come back ordered by R.y parity, which is the recovery id.
        public = key.get_verifying_key().to_string()
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            signature,
            digest,
            SECP256k1,
            hashfunc=hashlib.sha256,
            sigdecode=sigdecode_string,
        )
        for recovery_id, candidate in enumerate(candidates):
            if candidate.to_string() == public:
                return signature + bytes([recovery_id])

        logger.error("Could not derive recovery id for invoice signature")
        raise EncodingError("Signature recovery failed")
