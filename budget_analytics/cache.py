"""Memoization keyed by a content hash of the budget snapshot.

Every engine function recomputes from scratch; this layer only lets a
caller skip the recomputation when the snapshot has not changed.  Any
edit to the snapshot changes its hash and therefore misses the cache.
"""

from __future__ import annotations

import copy
import dataclasses
import hashlib
import json
import logging
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

from . import config
from .models import BudgetState

logger = logging.getLogger(__name__)


def _typed_keys(value: Any) -> Any:
    """Turn dicts into sorted ``[repr(key), value]`` pairs so ``1`` and ``"1"`` stay distinct."""
    if isinstance(value, dict):
        return sorted([repr(key), _typed_keys(item)] for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return [_typed_keys(item) for item in value]
    return value


def snapshot_hash(state: BudgetState) -> str:
    """SHA-256 of a canonical JSON rendering of ``state``."""
    payload = json.dumps(_typed_keys(dataclasses.asdict(state)), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class SnapshotCache:
    """Bounded LRU of results keyed by function, snapshot hash and arguments."""

    def __init__(self, max_size: Optional[int] = None) -> None:
        self.max_size = max_size if max_size is not None else config.CACHE_SIZE
        self._results: "OrderedDict[Tuple[str, str, str], Any]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._results)

    def get_or_compute(self, func: Callable[..., Any], state: BudgetState, *args: Any, **kwargs: Any) -> Any:
        """Return ``func(state, *args, **kwargs)``, reusing a stored result when possible.

        Callers always receive a copy, so mutating a returned result never
        leaks into later hits.
        """
        key = (
            f"{func.__module__}.{func.__qualname__}",
            snapshot_hash(state),
            repr((args, sorted(kwargs.items()))),
        )
        if key in self._results:
            self.hits += 1
            self._results.move_to_end(key)
            return copy.deepcopy(self._results[key])

        self.misses += 1
        result = func(state, *args, **kwargs)
        self._results[key] = copy.deepcopy(result)
        if len(self._results) > self.max_size:
            evicted, _ = self._results.popitem(last=False)
            logger.debug("Evicted cached result for %s", evicted[0])
        return result

    def clear(self) -> None:
        self._results.clear()
        self.hits = 0
        self.misses = 0
