"""
Configuration constants.

Centralizes the magic numbers used by the solver, the terrain generator and
the command line tool. Organized by functional area for easy maintenance.
"""

from typing import Literal

# =============================================================================
# GENERAL
# =============================================================================

# RANDOM_SEED = None
RANDOM_SEED = 1337

# Level used by the command line tool when --verbose is not given.
LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

# =============================================================================
# SOLVER
# =============================================================================

# Completed backtracks a Solver may perform before reporting "unsolvable".
DEFAULT_MAX_BACKTRACKS = 100

# Step-batched (animated) solving: collapse-or-backtrack actions per frame.
DEFAULT_STEPS_PER_FRAME = 50

# Seconds to yield between animation frames (~60 fps).
DEFAULT_FRAME_DELAY = 0.016

# Neighbour masks a TileCatalog remembers per (direction, possibility mask).
ALLOWED_MASK_CACHE_SIZE = 4096

# =============================================================================
# TERRAIN GENERATION
# =============================================================================

# Terrain maps are larger than the solver's unit scenarios, so allow more
# backtracking before falling back to the recovery fill.
TERRAIN_MAX_BACKTRACKS = 500

DEFAULT_MAP_WIDTH = 32
DEFAULT_MAP_HEIGHT = 24

# World seed documents must stay inside these bounds.
MIN_MAP_WIDTH = 16
MAX_MAP_WIDTH = 64
MIN_MAP_HEIGHT = 16
MAX_MAP_HEIGHT = 48

# Slider defaults (0-1 scale)
DEFAULT_FOREST_DENSITY = 0.5
DEFAULT_WATER_LEVEL = 0.35

# Multiplier strength for terrain zones that do not state their own density.
DEFAULT_ZONE_DENSITY = 1.5

# Tiles the recovery fill may use when the solver gives up.
FALLBACK_TILES: tuple[str, ...] = ("grass", "meadow", "forest", "hills", "scrubland")
FALLBACK_DEFAULT_TILE = "grass"

# =============================================================================
# DEBUG OUTPUT
# =============================================================================

# Symbol printed for collapsed tiles whose catalogue entry has no symbol.
DEBUG_UNKNOWN_SYMBOL = "?"
