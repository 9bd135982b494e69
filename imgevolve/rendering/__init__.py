from imgevolve.rendering.renderer import new_canvas, render_dna

__all__ = ["new_canvas", "render_dna"]
