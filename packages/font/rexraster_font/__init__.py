"""Bitmap font sheet decoding and glyph atlas construction."""

from .atlas import DEFAULT_BACKGROUND_COLOR, build_atlas, decode_font_sheet, parse_color_key
from .loader import AtlasLoader, default_loader
from .models import GLYPH_COUNT, Atlas, FontSheet, GlyphMask

__all__ = [
    "Atlas",
    "AtlasLoader",
    "DEFAULT_BACKGROUND_COLOR",
    "FontSheet",
    "GLYPH_COUNT",
    "GlyphMask",
    "build_atlas",
    "decode_font_sheet",
    "default_loader",
    "parse_color_key",
]
