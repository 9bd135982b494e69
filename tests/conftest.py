"""Shared fixtures for session, genome and plugin tests."""

import random

from PIL import Image
import pytest

from imgevolve.genome import DNA, Shape
from imgevolve.session import TaskState

WIDTH = 16
HEIGHT = 12
SHAPES = 4
VERTICES = 3


@pytest.fixture
def target_image() -> Image.Image:
    """Small RGB gradient used as the optimization target."""
    image = Image.new("RGB", (WIDTH, HEIGHT))
    image.putdata(
        [
            (x * 255 // (WIDTH - 1), y * 255 // (HEIGHT - 1), 128)
            for y in range(HEIGHT)
            for x in range(WIDTH)
        ]
    )
    return image


@pytest.fixture
def make_dna():
    """Factory for deterministic genomes of a given budget and divergence."""

    def _make(
        divergence: float = 0.5,
        shape_count: int = SHAPES,
        vertex_count: int = VERTICES,
        seed: int = 0,
    ) -> DNA:
        rng = random.Random(seed)
        shapes = [
            Shape(
                color=(rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255), rng.randint(1, 255)),
                points=[
                    (rng.uniform(0, WIDTH), rng.uniform(0, HEIGHT))
                    for _ in range(vertex_count)
                ],
            )
            for _ in range(shape_count)
        ]
        return DNA(shapes=shapes, divergence=divergence)

    return _make


@pytest.fixture
def session(target_image) -> TaskState:
    """Fresh, unseeded session with default plugins."""
    return TaskState(SHAPES, VERTICES, target_image)


@pytest.fixture
def seeded_session(session) -> TaskState:
    session.seed(random.Random(42))
    return session
