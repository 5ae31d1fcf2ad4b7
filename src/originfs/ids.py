"""
Record identifier generation.

Identifiers are 32 hex characters derived from a random token, the current
time and the owner name. They are collision resistant, not secret.
"""
import hashlib
import logging
import secrets
import string
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ID_LENGTH = 32
TOKEN_LENGTH = 16
MAX_ATTEMPTS = 8

_TOKEN_ALPHABET = string.ascii_letters + string.digits


def random_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def rolling_hash(text: str) -> str:
    """Non-cryptographic 32-bit multiplicative hash, abs-valued and zero padded."""
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 0x100000000
    return format(abs(value), "x").rjust(ID_LENGTH, "0")


def digest(text: str) -> str:
    try:
        hasher = hashlib.new("sha1", usedforsecurity=False)
    except ValueError:
        # sha1 can be disabled outright on restricted (e.g. FIPS) builds.
        logger.warning("sha1 unavailable, falling back to a non-cryptographic identifier hash")
        return rolling_hash(text)
    hasher.update(text.encode("utf-8"))
    return hasher.hexdigest()[:ID_LENGTH]


def generate_id(owner: str, taken: Optional[Callable[[str], bool]] = None) -> str:
    """
    Produce a new record identifier for `owner`.

    `taken` reports identifiers already known locally; a candidate it accepts
    is discarded and a new one drawn.
    """
    for _ in range(MAX_ATTEMPTS):
        candidate = digest(random_token() + str(int(time.time() * 1000)) + owner)
        if taken is None or not taken(candidate):
            return candidate
        logger.debug(f"Discarding identifier {candidate}: already in use")
    raise RuntimeError(f"Could not allocate an unused identifier after {MAX_ATTEMPTS} attempts")
