from __future__ import annotations

from typing import Iterator

from imgevolve.genome.mutation import MutationType


class MutationStatistics:
    """Per-kind attempt counts and cumulative improvements.

    Every :class:`MutationType` is present from construction, so lookups never
    miss. Not thread-safe on its own; the owning session mutates it under its
    improvement lock.
    """

    def __init__(self) -> None:
        self.counts: dict[MutationType, int] = {}
        self.improvements: dict[MutationType, float] = {}
        self.reset()

    def reset(self) -> None:
        for kind in MutationType:
            self.counts[kind] = 0
            self.improvements[kind] = 0.0

    def record_attempt(self, kind: MutationType) -> None:
        self.counts[kind] += 1

    def record_improvement(self, kind: MutationType, magnitude: float) -> None:
        self.improvements[kind] += magnitude

    def count(self, kind: MutationType) -> int:
        return self.counts[kind]

    def improvement(self, kind: MutationType) -> float:
        return self.improvements[kind]

    def set_entry(self, kind: MutationType, count: int, improvement: float) -> None:
        self.counts[kind] = count
        self.improvements[kind] = improvement

    def items(self) -> Iterator[tuple[MutationType, int, float]]:
        """Yield ``(kind, count, improvement)`` in enumeration order."""
        for kind in MutationType:
            yield kind, self.counts[kind], self.improvements[kind]

    def __len__(self) -> int:
        return len(self.counts)

    def as_dict(self) -> dict[str, dict[str, int | float]]:
        return {
            kind.value: {"count": count, "improvement": improvement}
            for kind, count, improvement in self.items()
        }
