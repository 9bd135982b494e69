import io

from pydantic import ValidationError as PydanticValidationError
import pytest

from imgevolve.exceptions import ValidationError
from imgevolve.genome import DNA, Mutation, MutationType, Shape
from imgevolve.utils.binary import BinaryReader, BinaryWriter


def test_argb_packing_is_signed_int32():
    shape = Shape(color=(0x11, 0x22, 0x33, 0xFF), points=[])
    assert shape.argb == 0xFF112233 - (1 << 32)
    assert Shape.unpack_argb(shape.argb) == (0x11, 0x22, 0x33, 0xFF)


def test_color_channels_are_validated():
    with pytest.raises(PydanticValidationError):
        Shape(color=(0, 0, 256, 255), points=[])


def test_points_are_float32_precision():
    shape = Shape(color=(0, 0, 0, 255), points=[(0.1, 1 / 3)])
    buffer = io.BytesIO()
    shape.write(BinaryWriter(buffer))
    buffer.seek(0)
    assert Shape.read(BinaryReader(buffer), 1) == shape


def test_dna_binary_layout(make_dna):
    dna = make_dna(divergence=0.25, shape_count=2, vertex_count=3)
    buffer = io.BytesIO()
    dna.write(BinaryWriter(buffer))
    # float64 divergence + 2 * (int32 colour + 3 * 2 float32)
    assert len(buffer.getvalue()) == 8 + 2 * (4 + 3 * 8)

    buffer.seek(0)
    restored = DNA.read(BinaryReader(buffer), 2, 3)
    assert restored == dna
    assert restored.divergence == 0.25


def test_dna_equality_ignores_last_mutation(make_dna):
    a = make_dna()
    b = a.clone()
    b.last_mutation = MutationType.SWAP_SHAPES
    assert a == b
    b.divergence = 0.1
    assert a != b


def test_clone_is_independent(make_dna):
    dna = make_dna()
    copy = dna.clone()
    copy.shapes[0] = Shape(color=(1, 2, 3, 4), points=[(0, 0), (1, 1), (2, 2)])
    assert dna.shapes[0] != copy.shapes[0]


def test_validate_budget(make_dna):
    dna = make_dna(shape_count=4, vertex_count=3)
    dna.validate_budget(4, 3)
    with pytest.raises(ValidationError):
        dna.validate_budget(5, 3)
    with pytest.raises(ValidationError):
        dna.validate_budget(4, 4)


def test_shape_svg_fragment():
    shape = Shape(color=(255, 0, 16, 51), points=[(0, 0), (10, 0), (5, 7.5)])
    element = shape.to_svg()
    assert element.tag == "polygon"
    assert element.get("points") == "0,0 10,0 5,7.5"
    assert element.get("fill") == "#ff0010"
    assert element.get("fill-opacity") == "0.2"


def test_mutation_type_lookup():
    assert MutationType.from_name("AdjustColor") is MutationType.ADJUST_COLOR
    assert MutationType.from_name("Teleport") is None


def test_mutation_improvement():
    mutation = Mutation(type=MutationType.SCALE, divergence_before=0.5, divergence_after=0.25)
    assert mutation.improvement == 0.25
    assert Mutation(divergence_after=0.3).improvement == 0.0
