"""
One-time code generation and secret hashing.

The OTP space is only 10^6 values, so brute-force resistance comes from
the attempt cap and expiry. Hashing exists so that secrets are never
stored in recoverable form.
"""

import hashlib
import hmac
import secrets


class OtpGenerator:
    """
    Generates fixed-length numeric one-time codes.

    Codes are drawn with secrets.randbelow(10**length), which rejects
    out-of-range draws internally. Every value in 0..10**length - 1 is
    equally likely, unlike reducing a fixed-width random integer modulo
    10**length (a 32-bit source reduced mod 10^6 favours low values by
    roughly 1 part in 4 * 10^3).
    """

    def __init__(self, length: int = 6):
        if length < 1:
            raise ValueError("OTP length must be positive")
        self.length = length

    def generate(self) -> str:
        return str(secrets.randbelow(10 ** self.length)).zfill(self.length)


class TokenHasher:
    """Deterministic one-way digest (SHA-256, hex) for stored secrets"""

    def hash(self, secret: str) -> str:
        return hashlib.sha256(secret.encode("utf-8")).hexdigest()

    def matches(self, secret: str, digest: str) -> bool:
        return hmac.compare_digest(self.hash(secret), digest)


def generate_reset_secret(num_bytes: int = 32) -> str:
    """High-entropy reset authorization, hex-encoded (32 bytes -> 64 chars)"""
    return secrets.token_hex(num_bytes)
