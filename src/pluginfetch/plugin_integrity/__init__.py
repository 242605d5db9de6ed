"""
Integrity checks for downloaded plugins.
"""

from .integrity import (
    DEFAULT_ALGORITHM,
    IntegrityHash,
    digest_of,
    matches,
    parse_integrity,
    strongest_algorithm,
    verify,
)

__all__ = [
    "DEFAULT_ALGORITHM",
    "IntegrityHash",
    "digest_of",
    "matches",
    "parse_integrity",
    "strongest_algorithm",
    "verify",
]
