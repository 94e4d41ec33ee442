"""
Denylist entry helpers.

The bad bits list identifies content by the legacy double-hash format:
the hex SHA-256 of the CID string followed by a slash. Retrieval services
compute the same entry for a requested CID and look it up in the list.
"""
from __future__ import annotations

import hashlib
from typing import List

from .errors import FetchFailure
from .segmenter import DELIMITER

__all__ = ["bad_bits_entry", "parse_denylist"]


def bad_bits_entry(cid: str) -> str:
    """Return the denylist entry for a CID in the legacy double-hash format."""
    return hashlib.sha256(f"{cid}/".encode("utf-8")).hexdigest()


def parse_denylist(text: str) -> List[str]:
    """
    Parse a denylist document into hash tokens, in document order.

    Format:
        - blank lines and lines starting with '#' are ignored
        - '//<hash>' blocks a double-hashed entry; the '//' is stripped
        - lines starting with '!' are allow rules and are ignored
        - any other line is taken verbatim as a token

    Raises:
        FetchFailure: If a line contains whitespace or the segment delimiter
    """
    hashes: List[str] = []
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("!"):
            continue
        if line.startswith("//"):
            line = line[2:]
        if not line or DELIMITER in line or any(ch.isspace() for ch in line):
            raise FetchFailure(f"Malformed denylist entry on line {line_number}: {raw_line[:80]!r}")
        hashes.append(line)
    return hashes
