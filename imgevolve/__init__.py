"""imgevolve – approximate raster images with evolved polygon sets."""

from imgevolve.genome import DNA, Mutation, MutationType, Shape
from imgevolve.session import FORMAT_VERSION, MutationStatistics, TaskState

__all__ = [
    "DNA",
    "FORMAT_VERSION",
    "Mutation",
    "MutationStatistics",
    "MutationType",
    "Shape",
    "TaskState",
]
