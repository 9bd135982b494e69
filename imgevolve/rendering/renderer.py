from __future__ import annotations

from PIL import Image, ImageDraw

from imgevolve.genome.dna import DNA

BACKGROUND = (0, 0, 0)
SUPERSAMPLE = 2


def new_canvas(width: int, height: int) -> Image.Image:
    """Scratch RGB canvas for rendering a genome."""
    return Image.new("RGB", (width, height), BACKGROUND)


def render_dna(dna: DNA, canvas: Image.Image, smooth: bool = False) -> Image.Image:
    """Draw *dna* onto *canvas* in shape order and return the canvas.

    The canvas is cleared to opaque black first. Each polygon is
    alpha-blended over what was drawn before it. With *smooth* the genome is
    drawn at 2x and downsampled for anti-aliased edges.
    """
    width, height = canvas.size
    scale = SUPERSAMPLE if smooth else 1
    target = (
        Image.new("RGB", (width * scale, height * scale), BACKGROUND)
        if smooth
        else canvas
    )
    if not smooth:
        target.paste(BACKGROUND, (0, 0, width, height))

    draw = ImageDraw.Draw(target, "RGBA")
    for shape in dna.shapes:
        if len(shape.points) < 2:
            continue
        draw.polygon([(x * scale, y * scale) for x, y in shape.points], fill=shape.color)

    if smooth:
        canvas.paste(target.resize((width, height), Image.Resampling.LANCZOS))
    return canvas
