"""Unit tests for cache utilities."""

from __future__ import annotations

import threading


class TestTTLMemoryStore:
    """Tests for TTLMemoryStore class."""

    def test_put_and_get(self, memory_store):
        """Test basic put and get operations."""
        memory_store.put("key1", "value1")
        assert memory_store.get("key1") == "value1"

    def test_get_missing_key_returns_default(self, memory_store):
        assert memory_store.get("nonexistent") is None
        assert memory_store.get("nonexistent", "fallback") == "fallback"

    def test_entry_expires_after_ttl(self, memory_store):
        memory_store.put("key", "value", ttl_s=60)

        memory_store.clock.advance(59)
        assert memory_store.get("key") == "value"

        memory_store.clock.advance(1)
        assert memory_store.get("key") is None
        assert len(memory_store) == 0

    def test_no_ttl_never_expires(self, memory_store):
        memory_store.put("key", "value")
        memory_store.clock.advance(10 * 365 * 86400)
        assert memory_store.get("key") == "value"

    def test_default_ttl(self):
        from backend.utils.cache import TTLMemoryStore

        now = [100.0]
        store = TTLMemoryStore(default_ttl_s=5, clock=lambda: now[0])
        store.put("k", "v")
        now[0] = 105.0
        assert store.get("k") is None

    def test_overwrite_resets_expiry(self, memory_store):
        memory_store.put("key", "old", ttl_s=10)
        memory_store.clock.advance(8)
        memory_store.put("key", "new", ttl_s=10)
        memory_store.clock.advance(8)
        assert memory_store.get("key") == "new"

    def test_lru_eviction(self):
        from backend.utils.cache import TTLMemoryStore

        store = TTLMemoryStore(maxsize=2)
        store.put("a", "1")
        store.put("b", "2")
        store.get("a")  # "b" becomes least recently used
        store.put("c", "3")

        assert store.get("a") == "1"
        assert store.get("b") is None
        assert store.get("c") == "3"

    def test_delete_and_clear(self, memory_store):
        memory_store.put("a", "1")
        memory_store.put("b", "2")

        assert memory_store.delete("a") is True
        assert memory_store.delete("a") is False
        memory_store.clear()
        assert len(memory_store) == 0

    def test_concurrent_puts(self):
        from backend.utils.cache import TTLMemoryStore

        store = TTLMemoryStore(maxsize=1000)

        def writer(n):
            for i in range(100):
                store.put(f"{n}:{i}", str(i), ttl_s=60)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 500
