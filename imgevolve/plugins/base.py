from __future__ import annotations

from abc import ABC, abstractmethod
import random
from typing import TYPE_CHECKING

from PIL import Image
from pydantic import BaseModel, ConfigDict

from imgevolve.genome.dna import DNA

if TYPE_CHECKING:
    from imgevolve.session.task_state import TaskState


class Plugin(BaseModel, ABC):
    """Base for the three session capabilities.

    Model fields are the persisted parameters written into snapshots; runtime
    caches belong in private attributes.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)


class Initializer(Plugin):
    """Builds the seed genome for a session."""

    @abstractmethod
    def initialize(self, rng: random.Random, state: TaskState) -> DNA:
        """Create a genome matching ``state.shape_count`` / ``state.vertex_count``."""


class Mutator(Plugin):
    """Produces mutated copies of a genome."""

    @abstractmethod
    def mutate(self, rng: random.Random, dna: DNA, state: TaskState) -> DNA:
        """Return a new genome derived from *dna*.

        The input is never modified. The result carries ``last_mutation`` and
        the parent's divergence until it is re-scored.
        """


class Evaluator(Plugin):
    """Scores a genome against the session's target image."""

    @abstractmethod
    def initialize(self, state: TaskState) -> None:
        """Prepare against the session's target image and dimensions."""

    @abstractmethod
    def calculate_divergence(
        self,
        canvas: Image.Image,
        dna: DNA,
        state: TaskState,
        max_divergence: float,
    ) -> float:
        """Render *dna* onto *canvas* and return its divergence in ``[0, 1]``.

        Implementations may stop early and return any value above
        *max_divergence* once the candidate is known to be worse.
        """
