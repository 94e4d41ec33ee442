"""
Tests for the denylist reader and its version-aware cache.
"""
from __future__ import annotations

import pytest

from badbits_publisher.entries import bad_bits_entry
from badbits_publisher.errors import IncompleteDenylistError
from badbits_publisher.reader import DenylistCache, DenylistReader
from badbits_publisher.storage.keys import pointer_key, segment_key

PREFIX = "test"


def publish_by_hand(store, version: str, segments) -> None:
    for index, content in enumerate(segments):
        store.put(segment_key(PREFIX, version, index), content)
    store.put(pointer_key(PREFIX), version)


class TestDenylistReader:
    """Test reading the current version."""

    def test_no_pointer_returns_empty_list(self, store):
        reader = DenylistReader(store, PREFIX)
        assert reader.current_version() is None
        assert reader.read_all() == []
        assert reader.get_all_hashes() == []

    def test_reads_segments_in_index_order(self, store):
        store.put(segment_key(PREFIX, "v1", 10), "k")
        publish_by_hand(store, "v1", ["a,b", "c", "d,e", "f", "g", "h", "i", "j", "k0", "k1"])
        # Index 10 sorts before 2 as a string; order must follow the number
        assert DenylistReader(store, PREFIX).read_all() == [
            "a", "b", "c", "d", "e", "f", "g", "h", "i", "j", "k0", "k1", "k"
        ]

    def test_only_current_version_is_read(self, store):
        publish_by_hand(store, "v1", ["old"])
        publish_by_hand(store, "v2", ["new1,new2"])
        assert DenylistReader(store, PREFIX).read_all() == ["new1", "new2"]

    def test_version_with_no_segments_is_empty(self, store):
        store.put(pointer_key(PREFIX), "v1")
        assert DenylistReader(store, PREFIX).read_all() == []

    def test_prefix_does_not_match_longer_version(self, store):
        publish_by_hand(store, "v1", ["a"])
        store.put(segment_key(PREFIX, "v10", 0), "zzz")
        assert DenylistReader(store, PREFIX).read_all() == ["a"]

    def test_index_gap_raises(self, store):
        publish_by_hand(store, "v1", ["a", "b", "c"])
        store.delete(segment_key(PREFIX, "v1", 1))

        with pytest.raises(IncompleteDenylistError) as exc_info:
            DenylistReader(store, PREFIX).read_all()

        assert exc_info.value.version == "v1"
        assert exc_info.value.missing_keys == ("1",)

    def test_unreadable_segment_raises(self, flaky_store):
        publish_by_hand(flaky_store, "v1", ["a", "b"])
        flaky_store.fail_get_containing = "segments:v1:1"

        with pytest.raises(IncompleteDenylistError, match="Could not read segment"):
            DenylistReader(flaky_store, PREFIX).read_all()

    def test_listing_failure_raises(self, flaky_store):
        publish_by_hand(flaky_store, "v1", ["a"])
        flaky_store.fail_list = True

        with pytest.raises(IncompleteDenylistError, match="Could not list"):
            DenylistReader(flaky_store, PREFIX).read_all()

    def test_segment_deleted_after_listing_raises(self, flaky_store):
        publish_by_hand(flaky_store, "v1", ["a", "b"])
        original_list = flaky_store.list_keys

        def list_then_delete(prefix):
            keys = original_list(prefix)
            flaky_store.delete(segment_key(PREFIX, "v1", 1))
            return keys

        flaky_store.list_keys = list_then_delete
        with pytest.raises(IncompleteDenylistError, match="disappeared"):
            DenylistReader(flaky_store, PREFIX).read_all()


class TestDenylistCache:
    """Test the version-keyed cache."""

    def test_loads_once_per_version(self, store):
        publish_by_hand(store, "v1", ["a,b"])
        reader = DenylistReader(store, PREFIX)
        calls = []
        original = reader.read_version

        def counting_read(version):
            calls.append(version)
            return original(version)

        reader.read_version = counting_read
        cache = DenylistCache(reader)

        assert cache.hashes() == frozenset({"a", "b"})
        assert cache.hashes() == frozenset({"a", "b"})
        assert calls == ["v1"]
        assert cache.version == "v1"

    def test_reloads_on_version_change(self, store):
        publish_by_hand(store, "v1", ["a"])
        cache = DenylistCache(DenylistReader(store, PREFIX))
        assert cache.is_denied("a")

        publish_by_hand(store, "v2", ["b"])

        assert not cache.is_denied("a")
        assert cache.is_denied("b")
        assert cache.version == "v2"

    def test_empty_before_first_publish(self, store):
        cache = DenylistCache(DenylistReader(store, PREFIX))
        assert cache.hashes() == frozenset()
        assert not cache.is_denied("a")

    def test_incomplete_new_version_is_not_served(self, store):
        publish_by_hand(store, "v1", ["a"])
        cache = DenylistCache(DenylistReader(store, PREFIX))
        cache.hashes()

        store.put(segment_key(PREFIX, "v2", 1), "b")
        store.put(pointer_key(PREFIX), "v2")

        with pytest.raises(IncompleteDenylistError):
            cache.hashes()
        assert cache.version == "v1"

    def test_is_cid_denied_matches_full_entry(self, store):
        cid = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"
        publish_by_hand(store, "v1", [bad_bits_entry(cid)])
        cache = DenylistCache(DenylistReader(store, PREFIX))
        assert cache.is_cid_denied(cid)
        assert not cache.is_cid_denied("bafyother")
