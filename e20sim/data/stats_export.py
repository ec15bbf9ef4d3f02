"""Statistics and exporter.
"""
import csv
import json
from typing import Dict, List, Optional


HISTORY_LIMIT = 4096


class Statistics:
    """Per-level counters.

    With `keep_history` the hit rate is sampled after each load. The history
    never holds more than `history_limit` samples: once full, every other
    sample is dropped and the sampling stride doubles.
    """

    def __init__(self, keep_history: bool = False, history_limit: int = HISTORY_LIMIT):
        self.keep_history = keep_history
        self.history_limit = max(2, history_limit)
        self.reset()

    def reset(self):
        # counters start from zero
        self.accesses = 0
        self.hits = 0
        self.misses = 0
        self.stores = 0
        self.hit_rate_history: List[float] = []
        self._stride = 1

    def record_access(self, hit: bool):
        # call this for every load lookup at this level
        self.accesses += 1
        if hit:
            self.hits += 1
        else:
            self.misses += 1
        if self.keep_history and self.accesses % self._stride == 0:
            self.hit_rate_history.append(self.hit_rate)
            if len(self.hit_rate_history) >= self.history_limit:
                del self.hit_rate_history[::2]
                self._stride *= 2

    def record_store(self):
        self.stores += 1

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self):
        return (self.misses / self.accesses) if self.accesses else 0.0

    def as_dict(self) -> Dict[str, float]:
        return {
            'accesses': self.accesses,
            'hits': self.hits,
            'misses': self.misses,
            'stores': self.stores,
            'hit_rate': self.hit_rate,
            'miss_rate': self.miss_rate,
        }


def export_chart_json(stats: Dict[str, Statistics], fpath: str) -> str:
    """Export hit-rate history and counters of every cache level to a JSON file.
    """
    data = {
        name: {
            'hit_rate_history': list(s.hit_rate_history),
            'stats': s.as_dict(),
        }
        for name, s in stats.items()
    }
    with open(fpath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2)
    return fpath


def export_chart_pdf(stats: Dict[str, Statistics], fpath: str, title: Optional[str] = None) -> str:
    """Render the hit-rate history of each cache level and save it.
    The output format follows the file extension (pdf, png, svg).
    """
    # Use matplotlib
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(6, 2))
    colors = ['#FFA500', '#1F77B4']
    for i, (name, s) in enumerate(stats.items()):
        data = list(s.hit_rate_history) or [0]
        color = colors[i % len(colors)]
        ax.plot(range(len(data)), data, color=color, linewidth=2, label=name)
        ax.fill_between(range(len(data)), data, color=color, alpha=0.1)
    ax.set_ylim(0, 1)
    ax.set_xlabel('Load')
    ax.set_ylabel('Hit rate')
    if title:
        ax.set_title(title)
    ax.legend(loc='lower right')
    ax.grid(False)
    fig.tight_layout()
    fig.savefig(fpath, dpi=150)
    plt.close(fig)
    return fpath


class Exporter:
    @staticmethod
    def export_stats_csv(path: str, stats: Dict[str, Statistics]):
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['cache', 'accesses', 'hits', 'misses', 'stores', 'hit_rate', 'miss_rate'])
            for name, s in stats.items():
                writer.writerow([
                    name, s.accesses, s.hits, s.misses, s.stores, s.hit_rate, s.miss_rate
                ])
