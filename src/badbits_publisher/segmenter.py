"""
Denylist segmentation.

Splits an unbounded collection of hash tokens into delimiter-joined segments
that each fit a store's per-value ceiling. The input is deduplicated and
sorted here, so identical input sets always yield identical segment
boundaries regardless of the order the source delivered them in.
"""
from __future__ import annotations

from typing import Iterable, List

from .errors import OversizedHashError

__all__ = ["DELIMITER", "segment", "split_segment", "join_segments"]

DELIMITER = ","


def _validate_token(token: str, delimiter: str) -> None:
    if not token:
        raise ValueError("Empty hash token")
    if delimiter in token:
        raise ValueError(f"Hash token contains the segment delimiter {delimiter!r}: {token[:64]}")


def segment(hashes: Iterable[str], size_limit: int, delimiter: str = DELIMITER) -> List[str]:
    """
    Pack hashes greedily into the minimal number of segments.

    Segments are filled in sorted order; a segment is closed as soon as adding
    the next token (plus its delimiter) would exceed size_limit. Sizes are
    measured in UTF-8 bytes.

    Args:
        hashes: Hash tokens, in any order, duplicates allowed
        size_limit: Maximum serialized size of one segment in bytes
        delimiter: Separator between tokens; must not occur inside tokens

    Returns:
        Segment contents in order; empty list for empty input

    Raises:
        OversizedHashError: If one token alone exceeds size_limit
        ValueError: For a non-positive size_limit, empty delimiter, empty token,
            or a token containing the delimiter
    """
    if size_limit <= 0:
        raise ValueError(f"size_limit must be positive, got {size_limit}")
    if not delimiter:
        raise ValueError("delimiter must not be empty")

    delimiter_size = len(delimiter.encode("utf-8"))
    segments: List[str] = []
    current: List[str] = []
    current_size = 0

    for token in sorted(set(hashes)):
        _validate_token(token, delimiter)
        token_size = len(token.encode("utf-8"))
        if token_size > size_limit:
            raise OversizedHashError(token, size_limit)

        if not current:
            current = [token]
            current_size = token_size
        elif current_size + delimiter_size + token_size <= size_limit:
            current.append(token)
            current_size += delimiter_size + token_size
        else:
            segments.append(delimiter.join(current))
            current = [token]
            current_size = token_size

    if current:
        segments.append(delimiter.join(current))
    return segments


def split_segment(content: str, delimiter: str = DELIMITER) -> List[str]:
    """Split one stored segment back into its tokens."""
    if not content:
        return []
    return content.split(delimiter)


def join_segments(segments: Iterable[str], delimiter: str = DELIMITER) -> List[str]:
    """Concatenate the tokens of several segments, preserving order."""
    hashes: List[str] = []
    for content in segments:
        hashes.extend(split_segment(content, delimiter))
    return hashes
