"""HMAC capability tokens for anonymous, time-boxed file retrieval.

The MAC input is the 8-byte big-endian issue timestamp followed by the UTF-8
file id, keyed with the file's own signing key. Signing the timestamp
together with the id means neither can be altered without invalidating the
signature.
"""

import binascii
import hashlib
import hmac

from nextcdn.utils import now_seconds

# Tokens issued this far in the future are rejected
MAX_CLOCK_SKEW_SECONDS = 60

_DIGEST_SIZE = hashlib.sha256().digest_size
_MAX_TIMESTAMP = 2**64 - 1


def _compute(file_id: str, secret_key: str, timestamp: int) -> bytes:
    message = timestamp.to_bytes(8, "big") + file_id.encode("utf-8")
    return hmac.new(secret_key.encode("utf-8"), message, hashlib.sha256).digest()


def generate_signature(file_id: str, secret_key: str, now: int | None = None) -> tuple[str, int]:
    """Sign file_id at the current time.

    Args:
        file_id: Identifier of the file the token grants access to
        secret_key: Per-file signing key
        now: Override for the current Unix time in seconds

    Returns:
        Tuple of (hex signature, Unix timestamp used)
    """
    timestamp = now_seconds() if now is None else now
    return _compute(file_id, secret_key, timestamp).hex(), timestamp


def verify_signature(
    file_id: str, secret_key: str, signature: str, timestamp: int, expiry_seconds: int, now: int | None = None
) -> bool:
    """Check a (signature, timestamp) pair for file_id.

    Returns False for expired, future-dated or malformed tokens. Never raises.
    """
    current = now_seconds() if now is None else now

    if timestamp < 0 or timestamp > _MAX_TIMESTAMP:
        return False
    if current > timestamp + expiry_seconds:
        return False
    if timestamp > current + MAX_CLOCK_SKEW_SECONDS:
        return False

    try:
        supplied = binascii.unhexlify(signature)
    except (ValueError, TypeError, binascii.Error):
        return False
    if len(supplied) != _DIGEST_SIZE:
        return False

    try:
        expected = _compute(file_id, secret_key, timestamp)
    except (UnicodeEncodeError, OverflowError):
        return False
    return hmac.compare_digest(expected, supplied)
