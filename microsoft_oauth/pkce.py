"""PKCE (Proof Key for Code Exchange) generation"""

import base64
import hashlib
import secrets
from typing import NamedTuple

# Bytes of randomness behind each verifier
VERIFIER_BYTES = 32


class PKCEPair(NamedTuple):
    """PKCE code verifier and challenge pair"""
    verifier: str
    challenge: str


def generate_pkce() -> PKCEPair:
    """
    Generate PKCE code verifier and challenge.

    - Verifier: 32 random bytes, hex encoded (64 characters)
    - Challenge: SHA-256 hash of verifier, base64url encoded without padding

    A pair belongs to a single login attempt; generate a new one every time.

    Returns:
        PKCEPair: Tuple of (verifier, challenge)
    """
    verifier = secrets.token_hex(VERIFIER_BYTES)

    challenge_bytes = hashlib.sha256(verifier.encode('utf-8')).digest()
    challenge = base64.urlsafe_b64encode(challenge_bytes).decode('utf-8').rstrip('=')

    return PKCEPair(verifier=verifier, challenge=challenge)
