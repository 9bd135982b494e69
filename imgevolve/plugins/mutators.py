from __future__ import annotations

import random
from typing import TYPE_CHECKING, Callable

from pydantic import Field

from imgevolve.genome.dna import DNA
from imgevolve.genome.mutation import MutationType
from imgevolve.genome.shape import Color, Point, Shape
from imgevolve.plugins.base import Mutator
from imgevolve.plugins.registry import PluginRegistry

if TYPE_CHECKING:
    from imgevolve.session.task_state import TaskState


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _random_color(rng: random.Random) -> Color:
    return (rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255), rng.randint(1, 255))


def _random_point(rng: random.Random, state: TaskState) -> Point:
    return (rng.uniform(0, state.image_width), rng.uniform(0, state.image_height))


class _ShapeMutator(Mutator):
    """Picks one supported mutation kind per call and applies it to a copy."""

    def _kinds(self) -> list[MutationType]:
        raise NotImplementedError

    def _operator(self, kind: MutationType) -> Callable[[random.Random, list[Shape], TaskState], None]:
        raise NotImplementedError

    def mutate(self, rng: random.Random, dna: DNA, state: TaskState) -> DNA:
        child = dna.clone()
        if not child.shapes:
            return child
        kind = rng.choice(self._kinds())
        if kind == MutationType.SWAP_SHAPES and len(child.shapes) < 2:
            kind = self._kinds()[0]
        self._operator(kind)(rng, child.shapes, state)
        child.last_mutation = kind
        return child


@PluginRegistry.register()
class HardMutator(_ShapeMutator):
    """Full-range replacements of shapes, colours and vertices."""

    def _kinds(self) -> list[MutationType]:
        return [
            MutationType.REPLACE_SHAPE,
            MutationType.REPLACE_COLOR,
            MutationType.REPLACE_POINT,
            MutationType.REPLACE_POINTS,
            MutationType.SWAP_SHAPES,
        ]

    def _operator(self, kind):
        return {
            MutationType.REPLACE_SHAPE: self._replace_shape,
            MutationType.REPLACE_COLOR: self._replace_color,
            MutationType.REPLACE_POINT: self._replace_point,
            MutationType.REPLACE_POINTS: self._replace_points,
            MutationType.SWAP_SHAPES: self._swap_shapes,
        }[kind]

    @staticmethod
    def _replace_shape(rng, shapes, state):
        i = rng.randrange(len(shapes))
        shapes[i] = Shape(
            color=_random_color(rng),
            points=[_random_point(rng, state) for _ in range(state.vertex_count)],
        )

    @staticmethod
    def _replace_color(rng, shapes, state):
        i = rng.randrange(len(shapes))
        shapes[i] = Shape(color=_random_color(rng), points=shapes[i].points)

    @staticmethod
    def _replace_point(rng, shapes, state):
        i = rng.randrange(len(shapes))
        points = list(shapes[i].points)
        points[rng.randrange(len(points))] = _random_point(rng, state)
        shapes[i] = Shape(color=shapes[i].color, points=points)

    @staticmethod
    def _replace_points(rng, shapes, state):
        i = rng.randrange(len(shapes))
        points = list(shapes[i].points)
        for v in rng.sample(range(len(points)), k=rng.randint(1, len(points))):
            points[v] = _random_point(rng, state)
        shapes[i] = Shape(color=shapes[i].color, points=points)

    @staticmethod
    def _swap_shapes(rng, shapes, state):
        i, j = rng.sample(range(len(shapes)), k=2)
        shapes[i], shapes[j] = shapes[j], shapes[i]


@PluginRegistry.register()
class SoftMutator(_ShapeMutator):
    """Small nudges of colours and vertex positions."""

    max_color_delta: int = Field(default=16, gt=0, le=255)
    max_position_delta: float = Field(default=8.0, gt=0)

    def _kinds(self) -> list[MutationType]:
        return [
            MutationType.ADJUST_COLOR,
            MutationType.ADJUST_POINT,
            MutationType.ADJUST_POINTS,
            MutationType.TRANSLATE,
            MutationType.SCALE,
        ]

    def _operator(self, kind):
        return {
            MutationType.ADJUST_COLOR: self._adjust_color,
            MutationType.ADJUST_POINT: self._adjust_point,
            MutationType.ADJUST_POINTS: self._adjust_points,
            MutationType.TRANSLATE: self._translate,
            MutationType.SCALE: self._scale,
        }[kind]

    def _nudge(self, rng: random.Random, point: Point, state: TaskState) -> Point:
        d = self.max_position_delta
        return (
            _clamp(point[0] + rng.uniform(-d, d), 0, state.image_width),
            _clamp(point[1] + rng.uniform(-d, d), 0, state.image_height),
        )

    def _adjust_color(self, rng, shapes, state):
        i = rng.randrange(len(shapes))
        d = self.max_color_delta
        channel = rng.randrange(4)
        color = list(shapes[i].color)
        low = 1 if channel == 3 else 0
        color[channel] = int(_clamp(color[channel] + rng.randint(-d, d), low, 255))
        shapes[i] = Shape(color=tuple(color), points=shapes[i].points)

    def _adjust_point(self, rng, shapes, state):
        i = rng.randrange(len(shapes))
        points = list(shapes[i].points)
        v = rng.randrange(len(points))
        points[v] = self._nudge(rng, points[v], state)
        shapes[i] = Shape(color=shapes[i].color, points=points)

    def _adjust_points(self, rng, shapes, state):
        i = rng.randrange(len(shapes))
        points = [self._nudge(rng, p, state) for p in shapes[i].points]
        shapes[i] = Shape(color=shapes[i].color, points=points)

    def _translate(self, rng, shapes, state):
        i = rng.randrange(len(shapes))
        d = self.max_position_delta
        dx, dy = rng.uniform(-d, d), rng.uniform(-d, d)
        points = [
            (_clamp(x + dx, 0, state.image_width), _clamp(y + dy, 0, state.image_height))
            for x, y in shapes[i].points
        ]
        shapes[i] = Shape(color=shapes[i].color, points=points)

    def _scale(self, rng, shapes, state):
        i = rng.randrange(len(shapes))
        points = shapes[i].points
        cx = sum(x for x, _ in points) / len(points)
        cy = sum(y for _, y in points) / len(points)
        factor = rng.uniform(0.8, 1.25)
        points = [
            (
                _clamp(cx + (x - cx) * factor, 0, state.image_width),
                _clamp(cy + (y - cy) * factor, 0, state.image_height),
            )
            for x, y in points
        ]
        shapes[i] = Shape(color=shapes[i].color, points=points)
