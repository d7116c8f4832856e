"""
Configuration module for the candidate banner collage service.

This module centralizes all configuration values and supports environment variable overrides.
Layout geometry for the two banner presets lives here as plain constants.
"""

import os
from typing import List, Tuple

# ========= SUPABASE CONFIGURATION =========

SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")

# Service role key is preferred; the anon key works for public buckets only
SUPABASE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY", "")

CANDIDATES_BUCKET = os.getenv("CANDIDATES_BUCKET", "candidates")

# ========= ASSET CONFIGURATION =========

ASSETS_PREFIX = os.getenv("ASSETS_PREFIX", "assets").strip("/")

# Empty value means "use Pillow's built-in font"
FONT_FILENAME = os.getenv("FONT_FILENAME", "OpenSans-SemiBold.ttf")

# ========= COLOR CONFIGURATION =========

DEFAULT_FRAME_COLOR = os.getenv("DEFAULT_FRAME_COLOR", "#FFD44A")
DEFAULT_TEXT_COLOR = os.getenv("DEFAULT_TEXT_COLOR", "#0D0D0D")
DEFAULT_TITLE_COLOR = os.getenv("DEFAULT_TITLE_COLOR", "#FFFFFF")

# Title used when the category row has no name
DEFAULT_TITLE = os.getenv("DEFAULT_TITLE", "CANDIDATAS")

# ========= TIMEOUT CONFIGURATION =========

API_TIMEOUT = int(os.getenv("API_TIMEOUT", "30"))  # Data store and upload requests, seconds
FETCH_TIMEOUT = int(os.getenv("FETCH_TIMEOUT", "20"))  # Per asset download, seconds

# ========= LOGGING CONFIGURATION =========

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(name)s] %(message)s"

# ========= GRID BANNER LAYOUT (1365x1365, 3x3) =========

GRID_CANVAS_SIZE: Tuple[int, int] = (1365, 1365)
GRID_PHOTO_W = 380
GRID_PHOTO_H = 320
GRID_NAME_BAR_H = 60

GRID_SLOTS: List[Tuple[int, int]] = [
    (75, 195), (492, 195), (909, 195),
    (75, 585), (492, 585), (909, 585),
    (75, 975), (492, 975), (909, 975),
]

GRID_BACKGROUND = "banner_grid_background.png"
GRID_FRAMES = "banner_grid_frames.png"

# ========= STORY BANNER LAYOUT (768x1365, 2x3) =========

STORY_CANVAS_SIZE: Tuple[int, int] = (768, 1365)
STORY_PHOTO_W = 330
STORY_PHOTO_H = 300
STORY_NAME_BAR_H = 56

STORY_SLOTS: List[Tuple[int, int]] = [
    (36, 230), (402, 230),
    (36, 600), (402, 600),
    (36, 970), (402, 970),
]

STORY_BACKGROUND = "banner_story_background.png"
STORY_FRAMES = "banner_story_frames.png"

# ========= TEXT CONFIGURATION =========

NAME_FONT_START = 36
NAME_FONT_MIN = 20
NAME_PADDING = 18  # Horizontal padding inside the name bar
NAME_BOLD_STRENGTH = 1

TITLE_FONT_START = 84
TITLE_FONT_MIN = 32
TITLE_MARGIN = 60  # Horizontal margin on each side of the title
TITLE_TOP = 60  # Distance from the top edge of the canvas
TITLE_BOLD_STRENGTH = 2

FONT_SIZE_STEP = 2
