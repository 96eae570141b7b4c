"""
Hall of fame for the arena simulation.

Keeps the best score ever observed for each distinct brain. Brains are
identified purely by their weights: two creatures with elementwise-equal
weight vectors share one entry. Entries are the gene pool for spawning.
"""

import logging
import numpy as np
from genome import weights_equal
from config import MAX_BEST_CREATURES, MAX_CREATURES

log = logging.getLogger(__name__)


class HallOfFameEntry:
    __slots__ = ("weights", "score")

    def __init__(self, weights: np.ndarray, score: int):
        self.weights = weights
        self.score   = score

    def __repr__(self):
        return f"HallOfFameEntry(score={self.score}, n_weights={len(self.weights)})"


class HallOfFame:
    """
    Ranked, capacity-bounded registry of (weights, best score).

    fold() may leave the entries unsorted; call rerank() and truncate() once
    all folds of a tick are done.
    """

    def __init__(self, capacity: int = MAX_BEST_CREATURES,
                 keep: int = MAX_CREATURES):
        self.capacity = capacity
        self.keep     = keep
        self.entries  = []

    # ──────────────────────────────────────────────────────────────────────────

    def index_of(self, weights) -> int:
        """Index of the entry with equal weights, or -1."""
        for i, entry in enumerate(self.entries):
            if weights_equal(entry.weights, weights):
                return i
        return -1

    def fold(self, weights, score: int):
        """Record `score` for `weights`, keeping the best score per brain."""
        index = self.index_of(weights)
        if index == -1:
            self.entries.append(
                HallOfFameEntry(np.array(weights, dtype=np.float64), score))
        elif self.entries[index].score < score:
            self.entries[index].score = score

    def rerank(self):
        """Sort by descending score; equal scores keep their order."""
        self.entries.sort(key=lambda e: e.score, reverse=True)

    def truncate(self):
        """Once over capacity, drop the tail down to `keep` entries."""
        if len(self.entries) > self.capacity:
            log.debug("hall of fame over capacity (%d > %d), keeping best %d",
                      len(self.entries), self.capacity, self.keep)
            del self.entries[self.keep:]

    # ──────────────────────────────────────────────────────────────────────────

    @property
    def best_score(self) -> int:
        return max((e.score for e in self.entries), default=0)

    def __len__(self):
        return len(self.entries)

    def __getitem__(self, index) -> HallOfFameEntry:
        return self.entries[index]

    def __iter__(self):
        return iter(self.entries)

    def __bool__(self):
        return bool(self.entries)
