"""
Configuration for the grid planner.

Canvas constants are fixed; server settings can be overridden through
``GRIDPLANNER_*`` environment variables.
"""
import os

# Grid / camera
GRID_SIZE = 32  # pixels per cell at zoom 1.0
MIN_ZOOM = 0.25
MAX_ZOOM = 4.0
ZOOM_FACTOR = 1.1  # per wheel notch; its reciprocal zooms out
DEFAULT_CAMERA_OFFSET = (300.0, 200.0)

# Walls and openings, as fractions of one cell on screen
WALL_THICKNESS_RATIO = 1.0 / 6.0
HIT_TOLERANCE_FACTOR = 1.2  # hit radius = wall thickness * factor
OPENING_THICKNESS_RATIO = 1.0 / 8.0

# Empty canvases still show this many cells
MIN_GRID_EXTENT = 10
DRAFT_TOOLBAR_GAP = 8  # pixels between draft bbox and confirm/cancel toolbar

# Server
SERVER_HOST = os.environ.get("GRIDPLANNER_HOST", "127.0.0.1")
SERVER_PORT = int(os.environ.get("GRIDPLANNER_PORT", "3000"))
DATA_DIR = os.environ.get("GRIDPLANNER_DATA_DIR", "./data/projects")
LOG_LEVEL = os.environ.get("GRIDPLANNER_LOG_LEVEL", "INFO")

# Client
HTTP_TIMEOUT_SECONDS = float(os.environ.get("GRIDPLANNER_HTTP_TIMEOUT", "10"))
