import json

import pytest

from i18n_translator.core.cache import InMemoryCache, JsonFileCache, fingerprint


class TestFingerprint:

    def test_is_deterministic(self):
        assert fingerprint("Hello", "en", "de") == fingerprint("Hello", "en", "de")
        assert len(fingerprint("Hello", "en", "de")) == 64

    def test_depends_on_every_field(self):
        keys = {
            fingerprint("Hello", "en", "de"),
            fingerprint("Hello", "en", "fr"),
            fingerprint("Hello", "fr", "de"),
            fingerprint("Hello!", "en", "de"),
        }
        assert len(keys) == 4

    def test_fields_cannot_bleed_into_each_other(self):
        assert fingerprint("b", "en", "a") != fingerprint("a\x1fb", "en", "")


class TestInMemoryCache:

    def test_get_and_set(self, clock):
        cache = InMemoryCache(capacity=10, clock=clock)
        cache.set("k", "v")

        assert cache.get("k") == "v"
        assert cache.get("missing") is None
        stats = cache.stats()
        assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)
        assert stats.hit_ratio == 0.5

    def test_hit_ratio_without_lookups(self):
        assert InMemoryCache().stats().hit_ratio == 0.0

    def test_evicts_least_recently_used(self, clock):
        cache = InMemoryCache(capacity=3, clock=clock)
        for key in ("a", "b", "c"):
            cache.set(key, key.upper())
        cache.get("a")

        cache.set("d", "D")

        assert "b" not in cache
        assert cache.keys() == ["c", "a", "d"]
        assert cache.stats().evictions == 1

    def test_eviction_ignores_ttl(self, clock):
        cache = InMemoryCache(capacity=2, clock=clock)
        cache.set("long", "1", ttl=3600)
        cache.set("short", "2", ttl=1)
        cache.get("short")

        cache.set("new", "3")

        assert "long" not in cache
        assert "short" in cache

    def test_expired_entry_is_a_miss_and_removed(self, clock):
        cache = InMemoryCache(capacity=10, ttl=10, clock=clock)
        cache.set("k", "v")

        clock.advance(10)

        assert cache.get("k") is None
        assert len(cache) == 0
        stats = cache.stats()
        assert stats.expirations == 1
        assert stats.misses == 1

    def test_live_entry_survives_until_ttl(self, clock):
        cache = InMemoryCache(capacity=10, ttl=10, clock=clock)
        cache.set("k", "v")
        clock.advance(9.9)
        assert cache.get("k") == "v"

    def test_none_ttl_never_expires(self, clock):
        cache = InMemoryCache(capacity=10, ttl=None, clock=clock)
        cache.set("k", "v")
        clock.advance(10 ** 9)
        assert cache.get("k") == "v"

    def test_reset_refreshes_value_and_ttl(self, clock):
        cache = InMemoryCache(capacity=2, ttl=10, clock=clock)
        cache.set("a", "1")
        cache.set("b", "2")
        clock.advance(8)
        cache.set("a", "one")
        clock.advance(5)

        assert cache.get("a") == "one"
        assert cache.get("b") is None
        assert len(cache) == 1

    def test_evict_and_clear(self, clock):
        cache = InMemoryCache(capacity=10, clock=clock)
        cache.set("a", "1")
        cache.set("b", "2")

        assert cache.evict("a") is True
        assert cache.evict("a") is False
        assert cache.keys() == ["b"]

        cache.clear()
        assert len(cache) == 0
        assert cache.keys() == []

    def test_slots_are_reused(self, clock):
        cache = InMemoryCache(capacity=2, clock=clock)
        for i in range(50):
            cache.set(str(i), str(i))

        assert len(cache._slots) == 2
        assert cache.keys() == ["48", "49"]
        assert cache.stats().evictions == 48

    def test_contains_does_not_touch_recency(self, clock):
        cache = InMemoryCache(capacity=2, clock=clock)
        cache.set("a", "1")
        cache.set("b", "2")
        assert "a" in cache

        cache.set("c", "3")

        assert "a" not in cache
        assert cache.stats().hits == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            InMemoryCache(capacity=0)


class TestJsonFileCache:

    def test_round_trip_keeps_recency(self, tmp_path, clock):
        path = tmp_path / "cache.json"
        cache = JsonFileCache(path, capacity=3, clock=clock)
        cache.set("a", "1")
        cache.set("b", "2")
        cache.get("a")
        assert cache.save() is True

        restored = JsonFileCache(path, capacity=3, clock=clock)
        assert restored.load() == 2
        assert restored.keys() == ["b", "a"]
        assert restored.get("a") == "1"

    def test_expired_entries_are_not_loaded(self, tmp_path, clock):
        path = tmp_path / "cache.json"
        cache = JsonFileCache(path, ttl=10, clock=clock)
        cache.set("old", "1")
        clock.advance(6)
        cache.set("new", "2")
        cache.save()

        clock.advance(5)
        restored = JsonFileCache(path, ttl=10, clock=clock)

        assert restored.load() == 1
        assert restored.keys() == ["new"]

    def test_save_leaves_no_temporary_file(self, tmp_path, clock):
        path = tmp_path / "nested" / "cache.json"
        cache = JsonFileCache(path, clock=clock)
        cache.set("k", "v")
        cache.save()

        assert path.exists()
        assert not path.with_suffix(".tmp").exists()
        assert json.loads(path.read_text(encoding="utf-8"))["version"] == 1

    def test_missing_or_corrupt_file(self, tmp_path):
        path = tmp_path / "cache.json"
        assert JsonFileCache(path).load() == 0

        path.write_text("{not json", encoding="utf-8")
        assert JsonFileCache(path).load() == 0

        for document in ([1, 2], "cache", {"version": 1, "entries": {"key": "k"}}):
            path.write_text(json.dumps(document), encoding="utf-8")
            assert JsonFileCache(path).load() == 0

    def test_skips_malformed_entries(self, tmp_path, clock):
        path = tmp_path / "cache.json"
        good = {"key": "k2", "value": "Hallo", "inserted_at": clock.now, "ttl": None}
        path.write_text(json.dumps({
            "version": 1,
            "entries": [
                {"value": "missing key", "inserted_at": clock.now},
                {"key": "k1", "value": None, "inserted_at": clock.now},
                {"key": "k3", "value": "x", "inserted_at": "yesterday"},
                "not an entry",
                good,
            ],
        }), encoding="utf-8")

        cache = JsonFileCache(path, clock=clock)

        assert cache.load() == 1
        assert cache.keys() == ["k2"]
        assert cache.get("k2") == "Hallo"
