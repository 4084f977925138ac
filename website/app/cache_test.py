"""Unit tests for cache.py module."""

import unittest

from website.app import cache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestTTLCache(unittest.TestCase):
    """Tests for TTLCache."""

    def setUp(self) -> None:
        """Create a cache driven by a fake clock."""
        self.clock = FakeClock()
        self.cache = cache.TTLCache(ttl=60, max_size=2, clock=self.clock)

    def test_set_and_get_returns_value(self) -> None:
        """A stored value is returned while fresh."""
        self.cache.set('k', 'v')
        self.assertEqual(self.cache.get('k'), 'v')

    def test_missing_key_returns_none(self) -> None:
        """Unknown keys return None."""
        self.assertIsNone(self.cache.get('missing'))

    def test_value_fresh_just_before_ttl(self) -> None:
        """Entries are served until the window has fully elapsed."""
        self.cache.set('k', 'v')
        self.clock.advance(59.9)
        self.assertEqual(self.cache.get('k'), 'v')

    def test_expired_key_returns_none(self) -> None:
        """Entries expire once their age reaches the TTL."""
        self.cache.set('k', 'v')
        self.clock.advance(60)
        self.assertIsNone(self.cache.get('k'))
        self.assertEqual(len(self.cache), 0)

    def test_set_refreshes_timestamp(self) -> None:
        """Overwriting an entry restarts its validity window."""
        self.cache.set('k', 'old')
        self.clock.advance(50)
        self.cache.set('k', 'new')
        self.clock.advance(50)
        self.assertEqual(self.cache.get('k'), 'new')

    def test_max_size_evicts_oldest(self) -> None:
        """The least recently used entry is evicted at capacity."""
        self.cache.set('a', 1)
        self.cache.set('b', 2)
        self.cache.set('c', 3)
        self.assertIsNone(self.cache.get('a'))
        self.assertEqual(self.cache.get('b'), 2)
        self.assertEqual(self.cache.get('c'), 3)

    def test_get_refreshes_lru_order(self) -> None:
        """Reading an entry protects it from the next eviction."""
        self.cache.set('a', 1)
        self.cache.set('b', 2)
        self.cache.get('a')
        self.cache.set('c', 3)
        self.assertEqual(self.cache.get('a'), 1)
        self.assertIsNone(self.cache.get('b'))

    def test_empty_list_is_a_hit(self) -> None:
        """Falsy values are cached like any other value."""
        self.cache.set('empty', [])
        self.assertEqual(self.cache.get('empty'), [])
        self.assertIn('empty', self.cache)

    def test_clear(self) -> None:
        """clear() drops every entry."""
        self.cache.set('a', 1)
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)
        self.assertNotIn('a', self.cache)


if __name__ == '__main__':
    unittest.main()
