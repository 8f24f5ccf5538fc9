"""botsim: a toy robot on a grid, driven by a streaming command language."""

__version__ = "0.1.0"
