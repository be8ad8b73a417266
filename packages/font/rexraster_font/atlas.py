"""Glyph atlas construction from a bitmap font sheet using a color-key rule."""

from __future__ import annotations

import re
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from rexraster_core.errors import FontLoadError, InvalidColor, InvalidFontLayout
from rexraster_core.logging_setup import get_logger

from .models import GLYPH_COUNT, GRID_COLUMNS, GRID_ROWS, Atlas, FontSheet

DEFAULT_BACKGROUND_COLOR = 0x00000000

_HEX_KEY = re.compile(r"[0-9a-f]{1,8}")

FontSource = Union[str, Path, bytes, bytearray, BinaryIO, Image.Image]

log = get_logger("font")


def parse_color_key(value: int | str | None) -> int:
    """Parse a packed RGBA transparency key.

    Accepts an int, ``"0xRRGGBBAA"``, ``"#RRGGBBAA"`` or ``"#RRGGBB"`` (alpha 0xFF),
    and the CSS short forms ``"#RGB"`` and ``"#RGBA"``.
    """
    if value is None:
        return DEFAULT_BACKGROUND_COLOR
    if isinstance(value, bool):
        raise InvalidColor(f"invalid color key: {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= 0xFFFFFFFF:
            raise InvalidColor(f"color key out of range: {value:#x}")
        return value

    text = str(value).strip().lower()
    if text.startswith("#"):
        digits = text[1:]
        if len(digits) in (3, 4):
            digits = "".join(c * 2 for c in digits)
        if len(digits) == 6:
            digits += "ff"
        elif len(digits) != 8:
            raise InvalidColor(f"invalid color key: {value!r}")
    elif text.startswith("0x"):
        digits = text[2:]
    else:
        digits = text
    if not _HEX_KEY.fullmatch(digits):
        raise InvalidColor(f"invalid color key: {value!r}")
    return int(digits, 16)


def decode_font_sheet(source: FontSource) -> FontSheet:
    if isinstance(source, Image.Image):
        rgba = source.convert("RGBA")
    else:
        if isinstance(source, (bytes, bytearray)):
            source = BytesIO(bytes(source))
        try:
            with Image.open(source) as image:
                rgba = image.convert("RGBA")
        except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as exc:
            log.error("font sheet decode failed", extra={"event": "font_load_failed", "error": str(exc)})
            raise FontLoadError(f"cannot decode font sheet: {exc}") from exc

    pixels = np.array(rgba, dtype=np.uint8)
    pixels.flags.writeable = False
    return FontSheet(width=rgba.width, height=rgba.height, pixels=pixels)


def _cell_size(sheet: FontSheet, char_width: int | None, char_height: int | None) -> tuple[int, int]:
    if char_width is None or char_height is None:
        if sheet.width % GRID_COLUMNS or sheet.height % GRID_ROWS:
            raise InvalidFontLayout(
                f"font sheet {sheet.width}x{sheet.height} is not divisible into a {GRID_COLUMNS}x{GRID_ROWS} grid"
            )
        char_width, char_height = sheet.char_width, sheet.char_height

    if char_width <= 0 or char_height <= 0:
        raise InvalidFontLayout(f"glyph size must be positive, got {char_width}x{char_height}")
    if char_width * GRID_COLUMNS > sheet.width or char_height * GRID_ROWS > sheet.height:
        raise InvalidFontLayout(
            f"{GRID_COLUMNS}x{GRID_ROWS} glyphs of {char_width}x{char_height} do not fit a "
            f"{sheet.width}x{sheet.height} sheet"
        )
    return int(char_width), int(char_height)


def build_atlas(
    source: FontSource | FontSheet,
    char_width: int | None = None,
    char_height: int | None = None,
    background_color: int | str | None = None,
) -> Atlas:
    sheet = source if isinstance(source, FontSheet) else decode_font_sheet(source)
    cw, ch = _cell_size(sheet, char_width, char_height)
    key = parse_color_key(background_color)

    # Crop to the glyph grid, then split rows/cols into (256, ch, cw) tiles.
    packed = sheet.packed()[: ch * GRID_ROWS, : cw * GRID_COLUMNS]
    tiles = packed.reshape(GRID_ROWS, ch, GRID_COLUMNS, cw).transpose(0, 2, 1, 3).reshape(GLYPH_COUNT, ch, cw)
    ink = tiles != np.uint32(key)
    ink.flags.writeable = False

    atlas = Atlas(char_width=cw, char_height=ch, background_color=key, ink=ink, sheet=sheet)
    log.info(
        "font atlas built",
        extra={
            "event": "font_atlas_built",
            "char_width": cw,
            "char_height": ch,
            "color_key": f"0x{key:08X}",
            "ink_pixels": int(ink.sum()),
        },
    )
    return atlas
