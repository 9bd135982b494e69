from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING

from pydantic import Field

from imgevolve.genome.dna import DNA
from imgevolve.genome.shape import Shape
from imgevolve.plugins.base import Initializer
from imgevolve.plugins.registry import PluginRegistry

if TYPE_CHECKING:
    from imgevolve.session.task_state import TaskState


@PluginRegistry.register()
class SegmentedInitializer(Initializer):
    """Lays shapes out on a grid of image segments.

    Each shape is a regular polygon inscribed in its own cell, with a random
    rotation, so the seed genome covers the whole canvas evenly.
    """

    color: tuple[int, int, int] = Field(default=(0, 0, 0))
    alpha: int = Field(default=128, ge=0, le=255)

    def initialize(self, rng: random.Random, state: TaskState) -> DNA:
        count = state.shape_count
        cols = math.ceil(math.sqrt(count))
        rows = math.ceil(count / cols)
        cell_w = state.image_width / cols
        cell_h = state.image_height / rows
        radius = min(cell_w, cell_h) / 2

        shapes = []
        for i in range(count):
            cx = (i % cols + 0.5) * cell_w
            cy = (i // cols + 0.5) * cell_h
            offset = rng.uniform(0, 2 * math.pi)
            points = [
                (
                    cx + radius * math.cos(offset + 2 * math.pi * v / state.vertex_count),
                    cy + radius * math.sin(offset + 2 * math.pi * v / state.vertex_count),
                )
                for v in range(state.vertex_count)
            ]
            shapes.append(Shape(color=(*self.color, self.alpha), points=points))
        return DNA(shapes=shapes)


@PluginRegistry.register()
class RandomInitializer(Initializer):
    """Scatters every vertex uniformly over the canvas."""

    color: tuple[int, int, int] = Field(default=(0, 0, 0))
    alpha: int = Field(default=128, ge=0, le=255)

    def initialize(self, rng: random.Random, state: TaskState) -> DNA:
        shapes = [
            Shape(
                color=(*self.color, self.alpha),
                points=[
                    (
                        rng.uniform(0, state.image_width),
                        rng.uniform(0, state.image_height),
                    )
                    for _ in range(state.vertex_count)
                ],
            )
            for _ in range(state.shape_count)
        ]
        return DNA(shapes=shapes)
