"""
Derived-result cache kept across analysis calls.

The analysis functions stay pure; callers that want memoization inject a
ResultCache. Writers merge additively (values implement merge(): paths union
their signatures, funding sources union per-signature amounts and keep the
earliest timestamp) instead of overwriting. Stored values are immutable and
replaced whole under a lock, so a reader sees either the prior or the updated
entry.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Protocol, TypeVar, runtime_checkable

from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound="Mergeable")


@runtime_checkable
class Mergeable(Protocol):
    def merge(self: M, other: M) -> M: ...


class ResultCache(Protocol):
    """Repository interface: get / put / merge by (namespace, key)."""

    def get(self, namespace: str, key: str) -> Any | None: ...

    def put(self, namespace: str, key: str, value: Any) -> None: ...

    def merge(self, namespace: str, key: str, value: Mergeable) -> Any: ...

    def items(self, namespace: str) -> dict[str, Any]: ...


class InMemoryResultCache:
    """
    Thread-safe in-process ResultCache.

    With max_namespaces set, the least recently used namespace is dropped
    once a write would exceed the limit.
    """

    def __init__(self, max_namespaces: int | None = None) -> None:
        if max_namespaces is not None and max_namespaces < 1:
            raise ValueError("max_namespaces must be at least 1")
        self.max_namespaces = max_namespaces
        self._lock = threading.Lock()
        self._data: OrderedDict[str, dict[str, Any]] = OrderedDict()

    def _bucket(self, namespace: str) -> dict[str, Any]:
        # caller holds the lock
        bucket = self._data.get(namespace)
        if bucket is None:
            bucket = self._data[namespace] = {}
            if self.max_namespaces is not None and len(self._data) > self.max_namespaces:
                evicted, _ = self._data.popitem(last=False)
                logger.debug("result_cache_evicted", namespace=evicted[:40])
        else:
            self._data.move_to_end(namespace)
        return bucket

    def get(self, namespace: str, key: str) -> Any | None:
        with self._lock:
            bucket = self._data.get(namespace)
            if bucket is None:
                return None
            self._data.move_to_end(namespace)
            return bucket.get(key)

    def put(self, namespace: str, key: str, value: Any) -> None:
        with self._lock:
            self._bucket(namespace)[key] = value

    def merge(self, namespace: str, key: str, value: Mergeable) -> Any:
        """Merge value into the stored entry (or store it) and return the result."""
        if not isinstance(value, Mergeable):
            raise TypeError(f"{type(value).__name__} does not implement merge()")
        with self._lock:
            bucket = self._bucket(namespace)
            existing = bucket.get(key)
            merged = value if existing is None else existing.merge(value)
            bucket[key] = merged
        return merged

    def items(self, namespace: str) -> dict[str, Any]:
        """Snapshot copy of one namespace."""
        with self._lock:
            return dict(self._data.get(namespace, {}))

    def namespace_count(self) -> int:
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
        logger.debug("result_cache_cleared")
