"""terrawave: Wave Function Collapse tile-map generation.

The `terrawave.wfc` package holds the solver core (cells, grid, propagation,
backtracking solver). `terrawave.terrain` builds on it with a terrain tile
catalogue, world-seed zones and a ready-made terrain generator.
"""

__version__ = "0.1.0"
