from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from PIL import Image
from pydantic import Field, PrivateAttr

from imgevolve.exceptions import EvolutionError
from imgevolve.genome.dna import DNA
from imgevolve.plugins.base import Evaluator
from imgevolve.plugins.registry import PluginRegistry
from imgevolve.rendering.renderer import render_dna

if TYPE_CHECKING:
    from imgevolve.session.task_state import TaskState

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


class _RasterEvaluator(Evaluator):
    """Shared plumbing: cache the normalized target, render, compare."""

    smooth: bool = Field(default=False, description="Render with anti-aliasing")

    _target: np.ndarray | None = PrivateAttr(default=None)

    def initialize(self, state: TaskState) -> None:
        if state.image_data is None:
            raise EvolutionError("Evaluator needs a target image")
        self._target = self._prepare(state.image_data.astype(np.float32) / 255.0)

    def _prepare(self, pixels: np.ndarray) -> np.ndarray:
        return pixels

    def _score(self, candidate: np.ndarray, target: np.ndarray) -> float:
        raise NotImplementedError

    def calculate_divergence(
        self,
        canvas: Image.Image,
        dna: DNA,
        state: TaskState,
        max_divergence: float,
    ) -> float:
        if self._target is None:
            self.initialize(state)
        render_dna(dna, canvas, smooth=self.smooth)
        candidate = self._prepare(np.asarray(canvas, dtype=np.float32) / 255.0)
        return self._score(candidate, self._target)


@PluginRegistry.register()
class RGBEvaluator(_RasterEvaluator):
    """Mean squared per-channel error; *emphasized* uses the 4th power."""

    emphasized: bool = Field(default=False)

    def _score(self, candidate: np.ndarray, target: np.ndarray) -> float:
        diff = np.abs(candidate - target)
        power = 4 if self.emphasized else 2
        return float(np.mean(diff**power))


@PluginRegistry.register()
class LumaEvaluator(_RasterEvaluator):
    """Mean squared error of Rec. 601 luma, ignoring hue."""

    def _prepare(self, pixels: np.ndarray) -> np.ndarray:
        return pixels @ LUMA_WEIGHTS

    def _score(self, candidate: np.ndarray, target: np.ndarray) -> float:
        return float(np.mean((candidate - target) ** 2))
