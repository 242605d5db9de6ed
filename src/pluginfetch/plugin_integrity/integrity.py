"""
Subresource integrity (SRI) digests of downloaded files.

A digest string is one or more whitespace-separated `<algorithm>-<base64>`
tokens, optionally followed by `?options`, e.g. `sha512-uvij...sQ==`.
"""

import base64
import hashlib
import hmac
import os
from dataclasses import dataclass
from typing import List, Optional, Union

DEFAULT_ALGORITHM = "sha512"

# Weakest first; verification only considers the strongest algorithm present.
SUPPORTED_ALGORITHMS = ("sha256", "sha384", "sha512")

CHUNK_SIZE = 1024 * 1024

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class IntegrityHash:
    algorithm: str
    digest: str
    options: str = ""

    def __str__(self) -> str:
        if self.options:
            return f"{self.algorithm}-{self.digest}?{self.options}"
        return f"{self.algorithm}-{self.digest}"


def parse_integrity(integrity: Optional[str]) -> List[IntegrityHash]:
    """
    Parse an SRI string into its hashes.

    Tokens that are not `<algorithm>-<base64>` with a supported algorithm are
    dropped, so the result may be empty.
    """
    hashes = []
    for token in (integrity or "").split():
        algorithm, sep, rest = token.partition("-")
        if not sep or algorithm not in SUPPORTED_ALGORITHMS or not rest:
            continue
        digest, _, options = rest.partition("?")
        hashes.append(IntegrityHash(algorithm, digest, options))
    return hashes


def _hash_file(file_path: PathLike, algorithm: str) -> str:
    hasher = hashlib.new(algorithm)
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return base64.b64encode(hasher.digest()).decode("ascii")


def digest_of(file_path: PathLike, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Compute the SRI digest of a file.

    Args:
        file_path: File to hash, read in chunks
        algorithm: One of SUPPORTED_ALGORITHMS

    Returns:
        The digest as `<algorithm>-<base64>`

    Raises:
        ValueError: If the algorithm is not supported
        OSError: If the file cannot be read
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported integrity algorithm: {algorithm}")
    return str(IntegrityHash(algorithm, _hash_file(file_path, algorithm)))


def strongest_algorithm(integrity: Optional[str]) -> Optional[str]:
    """
    The strongest supported algorithm in an SRI string, or None if it has no usable hash.
    """
    hashes = parse_integrity(integrity)
    if not hashes:
        return None
    return max(hashes, key=lambda h: SUPPORTED_ALGORITHMS.index(h.algorithm)).algorithm


def matches(actual: str, expected: Optional[str]) -> bool:
    """
    Compare a computed SRI digest with an expected SRI string.

    Only hashes of the strongest algorithm in `expected` are considered; an
    empty expected digest always passes.
    """
    if not expected:
        return True
    strongest = strongest_algorithm(expected)
    if strongest is None:
        return False
    actual_hashes = [h for h in parse_integrity(actual) if h.algorithm == strongest]
    return any(
        hmac.compare_digest(h.digest.encode(), a.digest.encode())
        for h in parse_integrity(expected)
        if h.algorithm == strongest
        for a in actual_hashes
    )


def verify(file_path: PathLike, expected: Optional[str]) -> bool:
    """
    Check a file against an expected SRI digest.

    An empty expected digest always passes. A mismatch, an expected digest
    with no usable hash, or an unreadable file all return False; this never
    raises.
    """
    if not expected:
        return True
    strongest = strongest_algorithm(expected)
    if strongest is None:
        return False
    try:
        actual = digest_of(file_path, strongest)
    except OSError:
        return False
    return matches(actual, expected)
