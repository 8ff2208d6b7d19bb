"""Tests for the TTL analysis cache."""
from analysis_cache import AnalysisCache

URL = "https://example.com/blog/garden-soil"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _payload(score=72):
    return {"success": True, "url": URL, "final_score": score, "modules": {"seo": {"score": 80, "metrics": {}}}}


class TestAnalysisCache:
    def test_miss_then_hit(self):
        cache = AnalysisCache(ttl_seconds=600, clock=FakeClock())
        assert cache.get(URL) is None
        assert cache.set(URL, False, False, _payload())
        hit = cache.get(URL)
        assert hit["final_score"] == 72
        assert hit["cached"] is True

    def test_hits_are_copies(self):
        cache = AnalysisCache(ttl_seconds=600, clock=FakeClock())
        cache.set(URL, False, False, _payload())
        cache.get(URL)["modules"]["seo"]["score"] = 0
        again = cache.get(URL)
        assert again["modules"]["seo"]["score"] == 80

    def test_stored_payload_is_not_marked_cached(self):
        cache = AnalysisCache(ttl_seconds=600, clock=FakeClock())
        payload = _payload()
        cache.set(URL, False, False, payload)
        cache.get(URL)
        assert "cached" not in payload

    def test_key_includes_options(self):
        cache = AnalysisCache(ttl_seconds=600, clock=FakeClock())
        cache.set(URL, False, False, _payload(10))
        cache.set(URL, True, False, _payload(20))
        assert cache.get(URL, fast=True)["final_score"] == 20
        assert cache.get(URL, fast=False, llm=True) is None
        assert len(cache) == 2

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = AnalysisCache(ttl_seconds=600, clock=clock)
        cache.set(URL, False, False, _payload())
        clock.now += 599
        assert cache.get(URL) is not None
        clock.now += 1
        assert cache.get(URL) is None
        assert len(cache) == 0

    def test_failures_are_never_stored(self):
        cache = AnalysisCache(ttl_seconds=600, clock=FakeClock())
        assert cache.set(URL, False, False, {"success": False, "error": "Failed to fetch page"}) is False
        assert cache.set(URL, False, False, {}) is False
        assert cache.get(URL) is None

    def test_evict_and_clear(self):
        cache = AnalysisCache(ttl_seconds=600, clock=FakeClock())
        cache.set(URL, False, False, _payload())
        assert cache.evict(URL) is True
        assert cache.evict(URL) is False
        cache.set(URL, False, False, _payload())
        cache.clear()
        assert len(cache) == 0

    def test_stats(self):
        clock = FakeClock()
        cache = AnalysisCache(ttl_seconds=10, clock=clock)
        cache.get(URL)
        cache.set(URL, False, False, _payload())
        cache.get(URL)
        clock.now += 10
        cache.get(URL)
        stats = cache.stats()
        assert stats == {
            "hits": 1,
            "misses": 2,
            "sets": 1,
            "evictions": 1,
            "size": 0,
            "hit_rate_percent": 33.33,
        }

    def test_expired_entries_are_swept_on_store(self):
        clock = FakeClock()
        cache = AnalysisCache(ttl_seconds=600, clock=clock)
        for n in range(3):
            cache.set(f"https://example.com/post-{n}", False, False, _payload())
        clock.now += 600
        cache.set(URL, False, False, _payload())
        assert len(cache) == 1
        assert cache.stats()["evictions"] == 3

    def test_oldest_entry_goes_past_max_entries(self):
        clock = FakeClock()
        cache = AnalysisCache(ttl_seconds=600, clock=clock, max_entries=2)
        cache.set("https://example.com/a", False, False, _payload())
        clock.now += 1
        cache.set("https://example.com/b", False, False, _payload())
        clock.now += 1
        cache.set("https://example.com/a", False, False, _payload(90))
        cache.set("https://example.com/c", False, False, _payload())
        assert len(cache) == 2
        assert cache.get("https://example.com/b") is None
        assert cache.get("https://example.com/a")["final_score"] == 90
        assert cache.stats()["evictions"] == 1
