"""
Admin token hashing utilities.

Security notes:
  • The configured token is hashed once at startup; only the SHA-256
    digest is kept in memory by the gate.
  • Presented tokens are hashed and compared with hmac.compare_digest so
    comparison time does not depend on where the first mismatch is.
  • generate_admin_token() returns the raw token exactly once — the
    operator must copy it into .env immediately.
"""

import hashlib
import hmac
import secrets


_TOKEN_PREFIX = "sk_admin_"


def hash_token(raw_token: str) -> str:
    """Return the SHA-256 hex digest of a raw token."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def token_matches(raw_token: str | None, expected_hash: str) -> bool:
    """Constant-time check of a presented token against a stored digest."""
    if not raw_token:
        return False
    return hmac.compare_digest(hash_token(raw_token), expected_hash)


def generate_admin_token() -> tuple[str, str]:
    """
    Generate a new admin token.

    Returns:
        (raw_token, token_hash) — raw_token goes into ADMIN_TOKEN.
    """
    raw_token = f"{_TOKEN_PREFIX}{secrets.token_hex(32)}"
    return raw_token, hash_token(raw_token)
