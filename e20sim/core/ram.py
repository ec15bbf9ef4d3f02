"""Word-addressable backing memory.

Holds MEM_SIZE 16-bit words. Every access keeps only the low 13 bits of
the address, so there is no out-of-range path at run time. Values are
truncated to 16 bits on write.

Parameters:
- Memory(image=None) -> zero-filled memory, optionally preloaded
- read(address) -> stored word
- write(address, value) -> stores value at address
- dump(count) -> first `count` words as a list
"""
from typing import Iterable, List, Optional

from e20sim.core.isa import MEM_SIZE, REG_SIZE


class Memory:
    def __init__(self, image: Optional[Iterable[int]] = None):
        self.size = MEM_SIZE
        self.words: List[int] = [0] * MEM_SIZE
        if image is not None:
            self.load_image(image)

    def load_image(self, image: Iterable[int]) -> None:
        words = list(image)
        if len(words) > self.size:
            raise ValueError("Program too big for memory")
        for address, value in enumerate(words):
            self.words[address] = value % REG_SIZE

    def read(self, address: int) -> int:
        return self.words[address % self.size]

    def write(self, address: int, value: int) -> None:
        self.words[address % self.size] = value % REG_SIZE

    def dump(self, count: int = MEM_SIZE) -> List[int]:
        return self.words[:count]

    def __getitem__(self, address: int) -> int:
        return self.read(address)

    def __len__(self):
        return self.size
