"""
Tests for denylist segmentation.

Covers greedy packing, the per-segment size bound, reconstruction of the
sorted unique input, determinism, and rejection of unusable tokens.
"""
from __future__ import annotations

import random
import string

import pytest

from badbits_publisher.errors import OversizedHashError
from badbits_publisher.segmenter import join_segments, segment, split_segment


def _random_hashes(rng: random.Random, count: int) -> list:
    alphabet = string.ascii_lowercase + string.digits
    return ["".join(rng.choice(alphabet) for _ in range(rng.randint(1, 20))) for _ in range(count)]


class TestSegment:
    """Test greedy packing."""

    def test_three_hashes_limit_twelve(self):
        """Two five-byte tokens plus a comma fill eleven bytes; the third spills over."""
        assert segment(["bafy1", "bafy2", "bafy3"], 12) == ["bafy1,bafy2", "bafy3"]

    def test_exact_fit_stays_in_one_segment(self):
        assert segment(["aaaaa", "bbbbb"], 11) == ["aaaaa,bbbbb"]

    def test_empty_input_yields_no_segments(self):
        assert segment([], 100) == []

    def test_single_token_at_limit(self):
        assert segment(["abcd"], 4) == ["abcd"]

    def test_input_is_sorted_and_deduplicated(self):
        assert segment(["c", "a", "b", "a", "c"], 100) == ["a,b,c"]

    def test_order_of_input_does_not_matter(self):
        hashes = [f"h{i:04d}" for i in range(200)]
        shuffled = list(hashes)
        random.Random(7).shuffle(shuffled)
        assert segment(hashes, 64) == segment(shuffled, 64)

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_size_bound_and_reconstruction(self, seed):
        rng = random.Random(seed)
        hashes = _random_hashes(rng, rng.randint(1, 400))
        limit = rng.randint(20, 200)

        segments = segment(hashes, limit)

        assert all(len(s.encode("utf-8")) <= limit for s in segments)
        assert join_segments(segments) == sorted(set(hashes))

    def test_greedy_packing_is_minimal_for_equal_sizes(self):
        hashes = [f"{i:09d}" for i in range(10)]
        # 10 bytes per token including delimiter, so 3 tokens fit in 29 bytes
        segments = segment(hashes, 29)
        assert [len(split_segment(s)) for s in segments] == [3, 3, 3, 1]

    def test_multibyte_tokens_measured_in_bytes(self):
        # "é" is two bytes, so "éé,éé2" is ten bytes
        assert segment(["éé", "éé2"], 8) == ["éé", "éé2"]

    def test_oversized_token_raises(self):
        with pytest.raises(OversizedHashError) as exc_info:
            segment(["short", "x" * 50], 10)
        assert exc_info.value.token == "x" * 50
        assert exc_info.value.size_limit == 10

    def test_token_containing_delimiter_rejected(self):
        with pytest.raises(ValueError, match="delimiter"):
            segment(["a,b"], 10)

    def test_empty_token_rejected(self):
        with pytest.raises(ValueError, match="Empty hash token"):
            segment(["a", ""], 10)

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit_rejected(self, limit):
        with pytest.raises(ValueError, match="size_limit"):
            segment(["a"], limit)

    def test_custom_delimiter(self):
        assert segment(["a", "b"], 10, delimiter="\n") == ["a\nb"]


class TestSplitAndJoin:
    """Test reading segments back."""

    def test_split_empty_segment(self):
        assert split_segment("") == []

    def test_join_preserves_segment_order(self):
        assert join_segments(["a,b", "c"]) == ["a", "b", "c"]
