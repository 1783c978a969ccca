import threading
import time
import unittest

from platemate.cache import NOT_FOUND, ExpiringCache


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class SlowClock(FakeClock):
    """Yields between reading the time and acting on it."""

    def __call__(self) -> float:
        time.sleep(0.01)
        return self.now


class ExpiringCacheTestCase(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = ExpiringCache(60, clock=self.clock)

    def test_keys_are_case_and_whitespace_insensitive(self):
        self.cache.set("  Chicken Breast ", {"calories": 165})
        self.assertEqual(self.cache.get("chicken breast"), {"calories": 165})
        self.assertIn("CHICKEN BREAST", self.cache)

    def test_entries_expire_after_ttl(self):
        self.cache.set("rice", {"calories": 130})
        self.clock.now += 60
        self.assertEqual(self.cache.get("rice"), {"calories": 130})
        self.clock.now += 1
        self.assertIsNone(self.cache.get("rice"))
        self.assertNotIn("rice", self.cache)
        self.assertEqual(len(self.cache), 0)

    def test_not_found_marker_is_cached(self):
        self.cache.set("unobtainium", NOT_FOUND)
        self.assertEqual(self.cache.get("unobtainium"), NOT_FOUND)
        stats = self.cache.stats()
        self.assertEqual(stats["total_entries"], 1)
        self.assertFalse(stats["entries"][0]["has_data"])

    def test_clear_expired_only_removes_stale_entries(self):
        self.cache.set("old", 1)
        self.clock.now += 45
        self.cache.set("new", 2)
        self.clock.now += 30
        self.assertEqual(self.cache.clear_expired(), 1)
        self.assertEqual(len(self.cache), 1)
        self.assertEqual(self.cache.get("new"), 2)

    def test_clear_returns_removed_count(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        self.assertEqual(self.cache.clear(), 2)
        self.assertEqual(len(self.cache), 0)

    def test_stats_reports_ttl_and_timestamps(self):
        self.cache.set("oats", {"calories": 389})
        stats = self.cache.stats()
        self.assertEqual(stats["ttl_seconds"], 60.0)
        self.assertEqual(stats["entries"][0]["key"], "oats")
        self.assertTrue(stats["entries"][0]["has_data"])
        self.assertTrue(stats["entries"][0]["cached_at"].endswith("+00:00"))


class SharedCacheTestCase(unittest.TestCase):
    def run_threads(self, target, count: int = 4):
        errors = []
        barrier = threading.Barrier(count)

        def worker():
            barrier.wait()
            try:
                target()
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return errors

    def test_concurrent_reads_of_an_expired_key(self):
        clock = SlowClock()
        cache = ExpiringCache(60, clock=clock)
        cache.set("apple", {"calories": 52})
        clock.now += 120

        results = []
        errors = self.run_threads(lambda: results.append(cache.get("apple")))

        self.assertEqual(errors, [])
        self.assertEqual(results, [None, None, None, None])
        self.assertEqual(len(cache), 0)

    def test_sweep_while_other_threads_write(self):
        clock = SlowClock()
        cache = ExpiringCache(60, clock=clock)
        for index in range(20):
            cache.set(f"old-{index}", index)
        clock.now += 120

        counter = iter(range(1000))

        def write_or_sweep():
            cache.clear_expired()
            for _ in range(5):
                cache.set(f"new-{next(counter)}", 1)

        errors = self.run_threads(write_or_sweep)

        self.assertEqual(errors, [])
        self.assertEqual(cache.clear_expired(), 0)
        self.assertEqual(len(cache), 20)


if __name__ == "__main__":
    unittest.main()
