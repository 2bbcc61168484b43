"""Hashing utilities for bibmerge."""

import hashlib

__all__ = [
    "format_sha256",
    "calculate_string_sha256",
]


def format_sha256(hex_digest: str) -> str:
    """Format SHA256 hash with standard prefix.

    Parameters
    ----------
    hex_digest : str
        Raw hexadecimal digest.

    Returns
    -------
    str
        Formatted hash with "sha256:" prefix.
    """
    return f"sha256:{hex_digest}"


def calculate_string_sha256(text: str) -> str:
    """Calculate SHA256 hash of string.

    Parameters
    ----------
    text : str
        Input text.

    Returns
    -------
    str
        SHA256 hash with "sha256:" prefix.
    """
    return format_sha256(hashlib.sha256(text.encode("utf-8")).hexdigest())
