"""Counter-based LRU bookkeeping for one cache row.

Every line carries a `recency` counter. Each access to the row ages every
line by one, and the line that was used is reset to 0, so the line left
untouched the longest holds the largest counter.

API (methods):
- age(): increment every line's counter
- access(way): mark `way` as most recently used
- evict(): return the way holding the largest counter (lowest index on ties)
- evict_for_store(): age the row and pick a store victim in one pass
- peek(): return way indices ordered LRU -> MRU (for debug/tests)
- reset(): zero all counters
"""

from typing import List


class CounterLRU:
    """Least-Recently-Used ordering kept as per-line counters.

    The policy does not own the lines, it only reads and writes their
    `valid` and `recency` fields.
    """

    def __init__(self, lines: List):
        self.lines = lines

    def age(self) -> None:
        for line in self.lines:
            line.recency += 1

    def access(self, way: int) -> None:
        """Register use of `way`"""
        self.lines[way].recency = 0

    def evict(self) -> int:
        """Pick the way with the largest counter; the first maximum wins."""
        victim = 0
        for way, line in enumerate(self.lines):
            if line.recency > self.lines[victim].recency:
                victim = way
        return victim

    def evict_for_store(self) -> int:
        """Age the row and choose where a store gets installed.

        The first invalid line wins. With every line valid, the largest
        counter wins. Resident copies of the stored tag are not considered.
        """
        victim = None
        best = -1
        for way, line in enumerate(self.lines):
            if victim is None or self.lines[victim].valid:
                if not line.valid or line.recency > best:
                    victim = way
                    best = line.recency
            line.recency += 1
        return victim

    def peek(self) -> List[int]:
        """Return ways from LRU->MRU as list."""
        order = sorted(range(len(self.lines)), key=lambda w: (-self.lines[w].recency, w))
        return order

    def reset(self) -> None:
        for line in self.lines:
            line.recency = 0


__all__ = ["CounterLRU"]
