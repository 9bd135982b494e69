from __future__ import annotations

from pydantic import BaseModel, Field

from imgevolve.exceptions import ValidationError
from imgevolve.genome.mutation import MutationType
from imgevolve.genome.shape import Shape
from imgevolve.utils.binary import BinaryReader, BinaryWriter


class DNA(BaseModel):
    """A candidate solution: ordered shapes plus their divergence from the target.

    Later shapes are drawn on top of earlier ones, so order is significant.
    """

    shapes: list[Shape] = Field(default_factory=list)
    divergence: float = Field(
        default=1.0, description="Distance from the target image, lower is better"
    )
    last_mutation: MutationType | None = Field(
        default=None,
        description="Kind of the mutation that produced this genome (not persisted)",
    )

    def clone(self) -> DNA:
        return self.model_copy(deep=True)

    def validate_budget(self, shape_count: int, vertex_count: int) -> None:
        """Raise ValidationError unless the genome matches the structural budget."""
        if len(self.shapes) != shape_count:
            raise ValidationError(
                f"Genome has {len(self.shapes)} shapes, expected {shape_count}"
            )
        for i, shape in enumerate(self.shapes):
            if len(shape.points) != vertex_count:
                raise ValidationError(
                    f"Shape {i} has {len(shape.points)} vertices, expected {vertex_count}"
                )

    def write(self, writer: BinaryWriter) -> None:
        writer.write_float64(self.divergence)
        for shape in self.shapes:
            shape.write(writer)

    @classmethod
    def read(cls, reader: BinaryReader, shape_count: int, vertex_count: int) -> DNA:
        divergence = reader.read_float64()
        shapes = [Shape.read(reader, vertex_count) for _ in range(shape_count)]
        return cls(shapes=shapes, divergence=divergence)

    def __eq__(self, other: object) -> bool:
        """Structural equality over shapes and divergence."""
        return (
            isinstance(other, DNA)
            and self.divergence == other.divergence
            and self.shapes == other.shapes
        )

