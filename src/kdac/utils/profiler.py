"""
Wall-clock profiling of the KDAC phases.

One ``Timer`` per function or partition of code; ``KDACProfiler`` groups the
timers the engine updates while fitting and predicting.
"""

from dataclasses import dataclass, field, fields
from contextlib import contextmanager
from typing import Dict, Optional
import time


@dataclass
class Timer:
    """Accumulates elapsed seconds over repeated measurements."""
    total: float = 0.0
    count: int = 0
    _start: Optional[float] = field(default=None, repr=False)

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> float:
        if self._start is None:
            raise RuntimeError("Timer.stop() called before start()")
        elapsed = time.perf_counter() - self._start
        self._start = None
        self.total += elapsed
        self.count += 1
        return elapsed

    @contextmanager
    def measure(self):
        self.start()
        try:
            yield self
        finally:
            self.stop()

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0

    def reset(self) -> None:
        self.total = 0.0
        self.count = 0
        self._start = None


@dataclass
class KDACProfiler:
    """Timers for each phase of a KDAC fit.

    init          -- input validation and state construction
    fit           -- the whole fit call
    u             -- EMBED phases (kernel, degree, decomposition)
    w             -- PROJECT phases
    gen_phi       -- weight matrix of the projection objective
    kmeans        -- partition clustering in predict
    gen_grad      -- kernel gradients with respect to W
    update_g_of_w -- objective evaluations during line search
    """
    init: Timer = field(default_factory=Timer)
    fit: Timer = field(default_factory=Timer)
    u: Timer = field(default_factory=Timer)
    w: Timer = field(default_factory=Timer)
    gen_phi: Timer = field(default_factory=Timer)
    kmeans: Timer = field(default_factory=Timer)
    gen_grad: Timer = field(default_factory=Timer)
    update_g_of_w: Timer = field(default_factory=Timer)

    def timers(self) -> Dict[str, Timer]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def reset(self) -> None:
        for timer in self.timers().values():
            timer.reset()

    def summary(self) -> Dict[str, Dict[str, float]]:
        return {
            name: {'total': t.total, 'count': t.count, 'average': t.average}
            for name, t in self.timers().items()
        }

    def report(self) -> str:
        lines = [f"{'phase':<14}{'calls':>7}{'total (s)':>12}{'avg (s)':>12}"]
        for name, t in self.timers().items():
            lines.append(f"{name:<14}{t.count:>7d}{t.total:>12.4f}{t.average:>12.5f}")
        return "\n".join(lines)
