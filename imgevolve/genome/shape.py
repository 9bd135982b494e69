from __future__ import annotations

import xml.etree.ElementTree as ET

import numpy as np
from pydantic import BaseModel, Field, field_validator

from imgevolve.utils.binary import BinaryReader, BinaryWriter

Color = tuple[int, int, int, int]
Point = tuple[float, float]


def _fmt(value: float) -> str:
    return format(value, ".6g")


class Shape(BaseModel):
    """A filled polygon with an RGBA colour."""

    color: Color = Field(description="RGBA colour, each channel 0..255")
    points: list[Point] = Field(
        default_factory=list, description="Polygon vertices in drawing order"
    )

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: Color) -> Color:
        for channel in v:
            if not 0 <= channel <= 255:
                raise ValueError(f"Colour channel out of range: {channel}")
        return v

    @field_validator("points")
    @classmethod
    def quantize_points(cls, v: list[Point]) -> list[Point]:
        """Vertices are stored as float32 in snapshots; keep them at that precision."""
        return [(float(np.float32(x)), float(np.float32(y))) for x, y in v]

    @property
    def argb(self) -> int:
        """Colour packed as a signed 32-bit ARGB integer."""
        r, g, b, a = self.color
        packed = (a << 24) | (r << 16) | (g << 8) | b
        return packed - (1 << 32) if packed >= (1 << 31) else packed

    @staticmethod
    def unpack_argb(value: int) -> Color:
        value &= 0xFFFFFFFF
        return (
            (value >> 16) & 0xFF,
            (value >> 8) & 0xFF,
            value & 0xFF,
            (value >> 24) & 0xFF,
        )

    def write(self, writer: BinaryWriter) -> None:
        writer.write_int32(self.argb)
        for x, y in self.points:
            writer.write_float32(x)
            writer.write_float32(y)

    @classmethod
    def read(cls, reader: BinaryReader, vertex_count: int) -> Shape:
        color = cls.unpack_argb(reader.read_int32())
        points = [
            (reader.read_float32(), reader.read_float32())
            for _ in range(vertex_count)
        ]
        return cls(color=color, points=points)

    def to_svg(self) -> ET.Element:
        """Encode as an SVG ``polygon`` fragment."""
        r, g, b, a = self.color
        return ET.Element(
            "polygon",
            {
                "points": " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in self.points),
                "fill": f"#{r:02x}{g:02x}{b:02x}",
                "fill-opacity": _fmt(a / 255),
            },
        )
