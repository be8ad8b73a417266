"""Typed font sheet and glyph atlas models."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

GRID_COLUMNS = 16
GRID_ROWS = 16
GLYPH_COUNT = GRID_COLUMNS * GRID_ROWS


@dataclass(frozen=True, eq=False)
class FontSheet:
    """Decoded RGBA font sheet laid out as a 16x16 grid of glyph cells."""

    width: int
    height: int
    pixels: np.ndarray  # (height, width, 4) uint8

    @property
    def char_width(self) -> int:
        return self.width // GRID_COLUMNS

    @property
    def char_height(self) -> int:
        return self.height // GRID_ROWS

    def packed(self) -> np.ndarray:
        """Return each pixel as a packed 32-bit ``r<<24 | g<<16 | b<<8 | a`` value."""
        px = self.pixels.astype(np.uint32)
        return (px[..., 0] << 24) | (px[..., 1] << 16) | (px[..., 2] << 8) | px[..., 3]


@dataclass(frozen=True, eq=False)
class GlyphMask:
    index: int
    ink: np.ndarray  # (char_height, char_width) bool

    @property
    def width(self) -> int:
        return int(self.ink.shape[1])

    @property
    def height(self) -> int:
        return int(self.ink.shape[0])

    @property
    def pixel_count(self) -> int:
        return int(self.ink.size)

    @property
    def ink_count(self) -> int:
        return int(self.ink.sum())

    def is_ink(self, x: int, y: int) -> bool:
        return bool(self.ink[y, x])


@dataclass(frozen=True, eq=False)
class Atlas:
    """All 256 glyph masks of one font sheet plus the glyph cell size."""

    char_width: int
    char_height: int
    background_color: int
    ink: np.ndarray  # (256, char_height, char_width) bool, read-only
    sheet: FontSheet | None = None

    def __post_init__(self) -> None:
        expected = (GLYPH_COUNT, self.char_height, self.char_width)
        if self.ink.shape != expected:
            raise ValueError(f"atlas ink must have shape {expected}, got {self.ink.shape}")

    @property
    def glyph_count(self) -> int:
        return int(self.ink.shape[0])

    def mask(self, code: int) -> GlyphMask:
        index = code % GLYPH_COUNT
        return GlyphMask(index=index, ink=self.ink[index])

    def ink_counts(self) -> list[int]:
        return [int(n) for n in self.ink.reshape(GLYPH_COUNT, -1).sum(axis=1)]
