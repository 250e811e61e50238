"""Freshness tokens binding a response to the request that asked for it."""

import secrets

from pki_trust.exceptions import InvalidArgumentError

# RFC 8954 limits the OCSP nonce to 1..32 octets
MIN_NONCE_LENGTH = 1
MAX_NONCE_LENGTH = 32
DEFAULT_NONCE_LENGTH = 16


def generate_nonce(length: int = DEFAULT_NONCE_LENGTH) -> bytes:
    """
    Generate a random nonce for an OCSP request.

    Args:
        length: Number of random octets (1..32)

    Returns:
        Nonce bytes
    """
    if not MIN_NONCE_LENGTH <= length <= MAX_NONCE_LENGTH:
        raise InvalidArgumentError(
            f"Nonce length must be between {MIN_NONCE_LENGTH} and {MAX_NONCE_LENGTH}, got {length}"
        )
    return secrets.token_bytes(length)


def generate_integer_nonce(bits: int = 64) -> int:
    """
    Generate a positive, non-zero nonce for a timestamp request.

    Args:
        bits: Size of the nonce in bits

    Returns:
        Nonce as a positive integer
    """
    if bits < 8:
        raise InvalidArgumentError(f"Nonce must have at least 8 bits, got {bits}")
    while True:
        value = secrets.randbits(bits)
        if value:
            return value
