"""
Tests for the derived-result cache (additive merge, snapshots, thread safety).
"""

from __future__ import annotations

import threading

import pytest


def _source(amount, timestamp, signature):
    from solana_forensics.analysis_engine.funding import FundingSource

    return FundingSource(address="A", amount=amount, timestamp=timestamp, transaction_signature=signature)


def test_put_and_get():
    """put stores by (namespace, key); unknown keys return None."""
    from solana_forensics.analysis_engine.cache import InMemoryResultCache

    cache = InMemoryResultCache()
    cache.put("ns", "k", 1)
    assert cache.get("ns", "k") == 1
    assert cache.get("ns", "missing") is None
    assert cache.get("other", "k") is None


def test_merge_funding_sources_is_additive():
    """Funding sources sum amounts across distinct signatures and keep the earliest timestamp with its signature."""
    from solana_forensics.analysis_engine.cache import InMemoryResultCache

    cache = InMemoryResultCache()
    cache.merge("funding", "A", _source(10.0, 200, "late"))
    merged = cache.merge("funding", "A", _source(5.0, 100, "early"))
    assert merged.amount == 15.0
    assert (merged.timestamp, merged.transaction_signature) == (100, "early")
    assert cache.get("funding", "A") == merged


def test_merge_funding_sources_counts_each_signature_once():
    """Merging the same transfer again, or an overlapping set, leaves already-counted amounts alone."""
    from solana_forensics.analysis_engine.cache import InMemoryResultCache

    cache = InMemoryResultCache()
    cache.merge("funding", "A", _source(10.0, 200, "s1"))
    assert cache.merge("funding", "A", _source(10.0, 200, "s1")).amount == 10.0
    both = cache.merge("funding", "A", _source(5.0, 100, "s2"))
    again = cache.merge("funding", "A", both)
    assert again.amount == 15.0
    assert again.contributions == (("s1", 10.0), ("s2", 5.0))
    assert again.confidence is None


def test_max_namespaces_evicts_least_recently_used():
    """Past max_namespaces the least recently used namespace is dropped."""
    from solana_forensics.analysis_engine.cache import InMemoryResultCache

    cache = InMemoryResultCache(max_namespaces=2)
    cache.put("a", "k", 1)
    cache.put("b", "k", 2)
    assert cache.get("a", "k") == 1
    cache.put("c", "k", 3)
    assert cache.namespace_count() == 2
    assert cache.get("b", "k") is None
    assert (cache.get("a", "k"), cache.get("c", "k")) == (1, 3)

    with pytest.raises(ValueError):
        InMemoryResultCache(max_namespaces=0)


def test_merge_paths_unions_signatures():
    """Paths union their signatures instead of overwriting."""
    from solana_forensics.analysis_engine.cache import InMemoryResultCache
    from solana_forensics.analysis_engine.paths import PATH_DIRECT_TRANSFER, TransactionPath

    cache = InMemoryResultCache()
    cache.merge("paths", "A->B", TransactionPath(("A", "B"), ("s1",), 0.4, PATH_DIRECT_TRANSFER))
    cache.merge("paths", "A->B", TransactionPath(("A", "B"), ("s2",), 0.3, PATH_DIRECT_TRANSFER))
    stored = cache.get("paths", "A->B")
    assert stored.transactions == ("s1", "s2")
    assert stored.significance == 0.4


def test_merge_rejects_values_without_merge():
    """merge requires a value implementing merge()."""
    from solana_forensics.analysis_engine.cache import InMemoryResultCache

    with pytest.raises(TypeError):
        InMemoryResultCache().merge("ns", "k", 42)


def test_items_is_a_snapshot():
    """items() returns a copy; later writes do not change it."""
    from solana_forensics.analysis_engine.cache import InMemoryResultCache

    cache = InMemoryResultCache()
    cache.put("ns", "a", 1)
    snap = cache.items("ns")
    cache.put("ns", "b", 2)
    assert snap == {"a": 1}
    assert cache.items("ns") == {"a": 1, "b": 2}
    cache.clear()
    assert cache.items("ns") == {}


def test_concurrent_merges_do_not_lose_updates():
    """Parallel writers merging into one key: the final amount is the sum of every write."""
    from solana_forensics.analysis_engine.cache import InMemoryResultCache

    cache = InMemoryResultCache()
    workers, per_worker = 8, 200

    def writer(n):
        for i in range(per_worker):
            cache.merge("funding", "A", _source(1.0, n * per_worker + i, f"s{n}-{i}"))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    final = cache.get("funding", "A")
    assert final.amount == float(workers * per_worker)
    assert (final.timestamp, final.transaction_signature) == (0, "s0-0")
