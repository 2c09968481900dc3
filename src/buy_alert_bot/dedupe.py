from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable


class TransactionLedger:
    """Bounded, insertion-ordered set of transaction ids already handled."""

    def __init__(self, max_size: int = 1000, keep: int = 500) -> None:
        if max_size <= 0 or keep <= 0:
            raise ValueError("max_size and keep must be positive")
        if keep >= max_size:
            raise ValueError("keep must be smaller than max_size")
        self.max_size = max_size
        self.keep = keep
        self._seen: OrderedDict[str, None] = OrderedDict()

    def __contains__(self, tx_hash: object) -> bool:
        return tx_hash in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def contains(self, tx_hash: str) -> bool:
        return tx_hash in self._seen

    def size(self) -> int:
        return len(self._seen)

    def add(self, tx_hash: str) -> bool:
        if tx_hash in self._seen:
            return False
        self._seen[tx_hash] = None
        return True

    def add_many(self, tx_hashes: Iterable[str]) -> int:
        added = 0
        for tx_hash in tx_hashes:
            if tx_hash and self.add(tx_hash):
                added += 1
        return added

    def prune_if_oversized(self) -> int:
        if len(self._seen) <= self.max_size:
            return 0
        evicted = 0
        while len(self._seen) > self.keep:
            self._seen.popitem(last=False)
            evicted += 1
        return evicted
