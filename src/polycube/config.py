"""
Configuration & Path Management
===============================
Central registry for file paths and the geometric constants shared by the
three cubes.

Why is this file needed?
------------------------
1. Abstraction: cube sizes, animation timings and highlight colors are read
   by the DataStore, every cube view and the renderer. Keeping them here means
   the views never disagree about the size of the space they share.
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets (sample dataset) when the app is frozen into an .exe.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    SAMPLE_DATASET_PATH (str): Absolute path to the bundled demo dataset.
"""
import sys
import os
from pathlib import Path


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # config.py is in src/polycube/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


ASSETS_PATH: str = get_resource_path("assets")
SAMPLE_DATASET_PATH: str = os.path.join(ASSETS_PATH, "sample_dataset.csv")

# --- Cube geometry ---
CUBE_WIDTH: float = 500.0
# Distance between the origins of neighbouring cubes in the POLY view
CUBE_SPACING: float = CUBE_WIDTH * 1.6
# Gap between small multiples in the juxtaposed layout
JP_GAP: float = CUBE_WIDTH * 0.1
JP_COLUMNS: int = 5

# --- Time slicing ---
DEFAULT_NUM_SLICES: int = 5
MIN_NUM_SLICES: int = 1
MAX_NUM_SLICES: int = 10

# --- Animation (milliseconds) ---
TRANSITION_DURATION_MS: float = 1000.0
TRANSITION_STAGGER_MS: float = 300.0
RENDER_TICK_MS: int = 16

# --- Nodes ---
BASE_NODE_RADIUS: float = 2.0
HIGHLIGHT_SCALE: float = 2.0
NODE_SIZE_RANGE: tuple[float, float] = (1.0, 6.0)
DEFAULT_LINKS_PER_NODE: int = 10
DEFAULT_CHARGE_FACTOR: float = 1.0

# --- Colors ---
HIGHLIGHT_COLOR: str = "#ffd700"
INCOMING_COLOR: str = "#1f9e89"
OUTGOING_COLOR: str = "#e4572e"
MONOCHROME_COLOR: str = "#4a4a4a"
FRAME_COLOR: str = "#9a9a9a"
LINK_COLOR: str = "#8c8c8c"
GUIDE_COLOR: str = "#333333"
DEFAULT_BACKGROUND: str = "#ffffff"

if not os.path.exists(ASSETS_PATH):
    print(f"WARNING: Assets path not found at {ASSETS_PATH}")
