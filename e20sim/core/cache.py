"""Core cache implementation

One `CacheHierarchy` models a single cache level made of rows (sets); each
row has `associativity` lines.
Behavior:
  block = address // blocksize
  row = block % num_rows
  tag = block // num_rows
- load_word returns (hit: bool, row: int)
- store_word returns row: int; stores are write-through so the caller
  always writes backing memory itself

A second level is not referenced from here. The engine holds both levels
and decides when to consult L2.
"""

from dataclasses import dataclass
from typing import List, Tuple

from e20sim.core.replacement_policies import CounterLRU


class CacheConfigError(ValueError):
    """Raised for a cache geometry that cannot be built."""


@dataclass
class CacheLine:
    """container for a cache line (way).

    Fields:
    - valid: whether the line currently holds a block
    - tag: the tag stored in the line
    - recency: LRU counter, larger means older
    """

    valid: bool = False
    tag: int = 0
    recency: int = 0


class CacheSet:
    """One associative row of a cache."""

    def __init__(self, associativity: int):
        self.lines: List[CacheLine] = [CacheLine() for _ in range(associativity)]
        self.policy = CounterLRU(self.lines)

    def __len__(self):
        return len(self.lines)

    def __getitem__(self, way: int) -> CacheLine:
        return self.lines[way]

    def find(self, tag: int):
        # wi = way-index
        for wi, line in enumerate(self.lines):
            if line.valid and line.tag == tag:
                return wi
        return None

    def install(self, way: int, tag: int) -> None:
        line = self.lines[way]
        line.valid = True
        line.tag = tag
        self.policy.access(way)

    def load(self, tag: int) -> bool:
        self.policy.age()
        wi = self.find(tag)
        if wi is not None:
            self.policy.access(wi)
            return True
        self.install(self.policy.evict(), tag)
        return False

    def store(self, tag: int) -> None:
        self.install(self.policy.evict_for_store(), tag)

    def reset(self) -> None:
        for line in self.lines:
            line.valid = False
            line.tag = 0
        self.policy.reset()


class CacheHierarchy:
    """Set-associative cache level with counter-based LRU replacement."""

    def __init__(self, size: int, associativity: int, blocksize: int, name: str = "L1"):
        if size <= 0 or associativity <= 0 or blocksize <= 0:
            raise CacheConfigError(
                f"cache {name}: size, associativity and blocksize must be positive"
            )
        if size % (associativity * blocksize) != 0:
            raise CacheConfigError(
                f"cache {name}: size {size} is not a positive multiple of "
                f"associativity*blocksize ({associativity}*{blocksize}), no whole number of rows"
            )
        self.name = name
        self.size = size
        self.associativity = associativity
        self.blocksize = blocksize
        self.num_rows = size // (associativity * blocksize)
        self.rows: List[CacheSet] = [CacheSet(associativity) for _ in range(self.num_rows)]

    def _decode(self, address: int) -> Tuple[int, int]:
        """Decode address into (row, tag)."""

        block = address // self.blocksize
        return block % self.num_rows, block // self.num_rows

    def load_word(self, address: int) -> Tuple[bool, int]:
        """Look `address` up, filling the LRU line of its row on a miss."""
        row, tag = self._decode(address)
        hit = self.rows[row].load(tag)
        return hit, row

    def store_word(self, address: int) -> int:
        row, tag = self._decode(address)
        self.rows[row].store(tag)
        return row

    def describe(self) -> Tuple[str, int, int, int, int]:
        return self.name, self.size, self.associativity, self.blocksize, self.num_rows

    def reset(self):
        """Invalidate every line and clear the LRU counters."""

        for row in self.rows:
            row.reset()
