"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, botsim.toml only contains overrides.
An empty (or absent) botsim.toml runs the classic 5x5 table.
"""

from __future__ import annotations

from pydantic import BaseModel, PositiveInt

from botsim.domain.types import DEFAULT_GRID_HEIGHT, DEFAULT_GRID_WIDTH, Grid
from botsim.pipeline.engine import DEFAULT_QUEUE_SIZE
from botsim.pipeline.streams import DEFAULT_CHUNK_SIZE, DEFAULT_HIGH_WATER_MARK


class GridConfig(BaseModel):
    """[grid] section."""

    model_config = {"frozen": True}

    width: PositiveInt = DEFAULT_GRID_WIDTH
    height: PositiveInt = DEFAULT_GRID_HEIGHT

    def to_grid(self) -> Grid:
        return Grid(width=self.width, height=self.height)


class StreamConfig(BaseModel):
    """[stream] section."""

    model_config = {"frozen": True}

    chunk_size: PositiveInt = DEFAULT_CHUNK_SIZE
    queue_size: PositiveInt = DEFAULT_QUEUE_SIZE
    sink_high_water_mark: PositiveInt = DEFAULT_HIGH_WATER_MARK
