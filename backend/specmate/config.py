"""
Report configuration — single source of truth for product branding, page
geometry, typography and filesystem locations.

Import from here in renderers and routes rather than hardcoding values.
"""
from __future__ import annotations

import os

# ── Branding ───────────────────────────────────────────────────────────────────
PRODUCT_NAME: str = os.getenv("PRODUCT_NAME", "SpecMate")
REPORT_TITLE: str = "Material Feasibility Analysis Report"


# ── Page geometry (millimetres, A4 portrait) ──────────────────────────────────
PAGE_MARGIN_MM: float = 20.0
FOOTER_OFFSET_MM: float = 10.0

# Embedded thumbnail bounding box
IMAGE_MAX_WIDTH_MM: float = 80.0
IMAGE_MAX_HEIGHT_MM: float = 60.0

# Each emitted line advances the cursor by font_size × this factor (mm)
LINE_HEIGHT_FACTOR: float = 0.5


# ── Typography (points) ───────────────────────────────────────────────────────
FONT_REGULAR: str = "Helvetica"
FONT_BOLD: str = "Helvetica-Bold"

FONT_SIZES: dict[str, float] = {
    "h1": 24,
    "h2": 20,
    "h3": 16,
    "h4": 14,
    "body": 11,
    "small": 9,
}


# ── Colours (RGB 0-255) ───────────────────────────────────────────────────────
BLACK: tuple[int, int, int] = (0, 0, 0)
MUTED: tuple[int, int, int] = (128, 128, 128)
SUBTLE: tuple[int, int, int] = (100, 100, 100)

TIER_COLORS: dict[int, tuple[int, int, int]] = {
    1: (34, 139, 34),    # green
    2: (255, 193, 7),    # yellow
    3: (220, 53, 69),    # red
}


# ── Content thresholds ────────────────────────────────────────────────────────
# Raw brief text is only echoed into the report below this length
BRIEF_TEXT_LIMIT: int = 500


# ── Filesystem / service ──────────────────────────────────────────────────────
PREVIEW_DIR: str = os.getenv("PREVIEW_DIR", "/tmp/specmate-previews")

# Open previews are capped; the oldest is released first, and any preview
# older than the TTL is released on the next registry access
PREVIEW_MAX_OPEN: int = int(os.getenv("PREVIEW_MAX_OPEN", "50"))
PREVIEW_TTL_SECONDS: float = float(os.getenv("PREVIEW_TTL_SECONDS", "1800"))

ALLOWED_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if o.strip()
]
