"""In-memory font sheet builders shared by the test suites."""

from __future__ import annotations

import sys
from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
for sub in ("packages/core", "packages/font", "packages/renderer", "apps/cli"):
    path = str(ROOT / sub)
    if path not in sys.path:
        sys.path.insert(0, path)

CLEAR = (0, 0, 0, 0)
MAGENTA = (255, 0, 255, 255)
WHITE = (255, 255, 255, 255)


def sheet_array(
    char_width: int,
    char_height: int,
    glyphs: dict[int, list[str]] | None = None,
    key: tuple[int, int, int, int] = CLEAR,
    ink: tuple[int, int, int, int] = WHITE,
) -> np.ndarray:
    """16x16 glyph sheet; ``glyphs`` maps index to rows of ``#`` (ink) and ``.``."""
    arr = np.zeros((16 * char_height, 16 * char_width, 4), dtype=np.uint8)
    arr[...] = key
    for index, rows in (glyphs or {}).items():
        oy = (index // 16) * char_height
        ox = (index % 16) * char_width
        for dy, row in enumerate(rows):
            for dx, ch in enumerate(row):
                if ch == "#":
                    arr[oy + dy, ox + dx] = ink
    return arr


def sheet_image(*args, **kwargs) -> Image.Image:
    return Image.fromarray(sheet_array(*args, **kwargs))


def patterned_sheet(char_width: int = 4, char_height: int = 6, key=CLEAR) -> Image.Image:
    """Every glyph gets a distinct, deterministic ink pattern."""
    arr = np.zeros((16 * char_height, 16 * char_width, 4), dtype=np.uint8)
    arr[...] = key
    ys, xs = np.mgrid[0 : 16 * char_height, 0 : 16 * char_width]
    index = (ys // char_height) * 16 + (xs // char_width)
    ink = ((xs * 7 + ys * 3 + index) % 5) < 2
    arr[ink] = (200, 180, 40, 255)
    return Image.fromarray(arr)


def png_bytes(image: Image.Image) -> bytes:
    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
