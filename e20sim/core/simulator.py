"""CacheSimulator wires the cache levels, the machine state and the engine.
Builds L1 (and optionally L2) from `CacheConfig` triples, runs the loaded
program to its halt and keeps per-level statistics.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .cache import CacheConfigError, CacheHierarchy
from .engine import HIT, SW, AccessEvent, ExecutionEngine, MachineState
from ..data.stats_export import Statistics

logger = logging.getLogger(__name__)

LEVEL_NAMES = ("L1", "L2")


@dataclass(frozen=True)
class CacheConfig:
    """Geometry of one cache level; `size` is in words."""

    size: int
    associativity: int
    blocksize: int

    @property
    def rows(self) -> int:
        return self.size // (self.associativity * self.blocksize)


def parse_cache_config(text: str) -> List[CacheConfig]:
    """Parse `size,assoc,blocksize` or two such triples into configs."""
    try:
        parts = [int(p) for p in text.split(",")]
    except ValueError:
        raise CacheConfigError("Invalid cache config") from None
    if len(parts) not in (3, 6):
        raise CacheConfigError("Invalid cache config")
    return [CacheConfig(*parts[i:i + 3]) for i in range(0, len(parts), 3)]


class CacheSimulator:
    def __init__(
        self,
        configs: Sequence[CacheConfig],
        program: Iterable[int] = (),
        callback: Optional[Callable[[AccessEvent], None]] = None,
        record_events: bool = False,
        keep_history: bool = False,
    ):
        if len(configs) > len(LEVEL_NAMES):
            raise CacheConfigError("Invalid cache config")
        self.caches: List[CacheHierarchy] = [
            CacheHierarchy(c.size, c.associativity, c.blocksize, name=name)
            for name, c in zip(LEVEL_NAMES, configs)
        ]
        for cache in self.caches:
            logger.debug("built cache %s with %d rows", cache.name, cache.num_rows)
        self.stats: Dict[str, Statistics] = {
            c.name: Statistics(keep_history=keep_history) for c in self.caches
        }
        # only kept on request; a program may never halt
        self.record_events = record_events
        self.events: List[AccessEvent] = []
        self.callback = callback
        self.program = list(program)
        self.state = MachineState.from_image(self.program)
        self.engine = ExecutionEngine(
            self.state,
            l1=self.l1,
            l2=self.l2,
            on_access=self._record,
        )

    @property
    def l1(self) -> Optional[CacheHierarchy]:
        return self.caches[0] if self.caches else None

    @property
    def l2(self) -> Optional[CacheHierarchy]:
        return self.caches[1] if len(self.caches) > 1 else None

    def _record(self, event: AccessEvent) -> None:
        if self.record_events:
            self.events.append(event)
        stats = self.stats[event.cache_name]
        if event.status == SW:
            stats.record_store()
        else:
            stats.record_access(event.status == HIT)
        if self.callback:
            self.callback(event)

    def step(self) -> bool:
        return self.engine.step()

    def run_all(self, max_steps: Optional[int] = None) -> MachineState:
        return self.engine.run(max_steps=max_steps)

    def reset(self):
        # fresh machine from the same program, cold caches, cleared stats
        for cache in self.caches:
            cache.reset()
        for s in self.stats.values():
            s.reset()
        self.events.clear()
        self.state = MachineState.from_image(self.program)
        self.engine.state = self.state
        self.engine.steps = 0
