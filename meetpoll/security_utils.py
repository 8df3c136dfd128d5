"""
Token utilities for host and participant credentials

Tokens are random and returned to the client once; only their SHA-256
hash is stored.
"""

import hashlib
import logging
import secrets
from typing import Optional

logger = logging.getLogger(__name__)


def generate_token(length: int = 32) -> str:
    """Generate a URL-safe random token"""
    return secrets.token_urlsafe(length)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a token (64 chars)"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks

    Args:
        a: First string
        b: Second string

    Returns:
        True if strings are equal, False otherwise
    """
    return secrets.compare_digest(a.encode(), b.encode())


def verify_host_token(raw_token: Optional[str], stored_hash: Optional[str]) -> bool:
    """Check a presented host token against the stored hash"""
    if not raw_token or not stored_hash:
        return False
    return constant_time_compare(hash_token(raw_token), stored_hash)


def mask_sensitive_data(data: str, visible_chars: int = 4) -> str:
    """
    Mask sensitive data for logging/display

    Args:
        data: Sensitive data to mask
        visible_chars: Number of characters to show at the end

    Returns:
        Masked string
    """
    if len(data) <= visible_chars:
        return "*" * len(data)

    return "*" * (len(data) - visible_chars) + data[-visible_chars:]
