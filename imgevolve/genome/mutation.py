from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, computed_field


class MutationType(str, Enum):
    """Mutation operator categories tracked in session statistics.

    The value is the name persisted in snapshots; declaration order is the
    order statistics are written in.
    """

    REPLACE_SHAPE = "ReplaceShape"
    REPLACE_COLOR = "ReplaceColor"
    REPLACE_POINT = "ReplacePoint"
    REPLACE_POINTS = "ReplacePoints"
    ADJUST_COLOR = "AdjustColor"
    ADJUST_POINT = "AdjustPoint"
    ADJUST_POINTS = "AdjustPoints"
    SWAP_SHAPES = "SwapShapes"
    TRANSLATE = "Translate"
    SCALE = "Scale"

    @classmethod
    def from_name(cls, name: str) -> MutationType | None:
        """Look up a kind by its persisted name, ``None`` when unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


class Mutation(BaseModel):
    """Descriptor of an accepted improvement, kept in the session's mutation log."""

    type: MutationType | None = Field(
        default=None, description="Kind of mutation that produced the improvement"
    )
    divergence_before: float | None = Field(
        default=None, description="Best-match divergence before acceptance"
    )
    divergence_after: float = Field(description="Divergence of the accepted genome")
    mutation_count: int = Field(
        default=0, ge=0, description="Session mutation counter at acceptance"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the improvement was accepted",
    )

    @computed_field
    @property
    def improvement(self) -> float:
        if self.divergence_before is None:
            return 0.0
        return self.divergence_before - self.divergence_after
