"""Typed renderer models: colors, cells, grids, frames and render options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple, Protocol, Sequence, Union

import numpy as np
from PIL import ImageColor

from rexraster_core.errors import InvalidColor, InvalidGrid

TRANSPARENT = "transparent"


class Color(NamedTuple):
    r: int
    g: int
    b: int

    def rgba(self, alpha: int = 255) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, alpha)

    @classmethod
    def coerce(cls, value: Any) -> "Color":
        if isinstance(value, Color):
            return value
        if isinstance(value, dict):
            value = (value.get("r"), value.get("g"), value.get("b"))
        r, g, b, _ = parse_color(value)
        return cls(r, g, b)


ColorLike = Union[str, Sequence[int], Color]


def parse_color(value: ColorLike) -> tuple[int, int, int, int]:
    """Resolve a color to RGBA. Strings go through Pillow's ``ImageColor``."""
    if isinstance(value, str):
        try:
            rgb = ImageColor.getrgb(value)
        except ValueError as exc:
            raise InvalidColor(f"unknown color {value!r}") from exc
    else:
        try:
            rgb = tuple(int(c) for c in value)
        except (TypeError, ValueError) as exc:
            raise InvalidColor(f"invalid color {value!r}") from exc
    if len(rgb) == 3:
        rgb = (*rgb, 255)
    if len(rgb) != 4 or any(not 0 <= c <= 255 for c in rgb):
        raise InvalidColor(f"invalid color {value!r}")
    return rgb  # type: ignore[return-value]


@dataclass(frozen=True)
class Cell:
    ascii_code: int
    fg: Color
    bg: Color
    transparent: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "ascii_code", int(self.ascii_code))
        object.__setattr__(self, "fg", Color.coerce(self.fg))
        object.__setattr__(self, "bg", Color.coerce(self.bg))
        object.__setattr__(self, "transparent", bool(self.transparent))

    @classmethod
    def of(cls, ascii_code: int, fg: ColorLike, bg: ColorLike, transparent: bool = False) -> "Cell":
        return cls(ascii_code, fg, bg, transparent)  # type: ignore[arg-type]

    @classmethod
    def coerce(cls, raw: Any) -> "Cell | None":
        """Accept a ``Cell``, a dict or any object with cell attributes."""
        if raw is None or isinstance(raw, Cell):
            return raw
        if isinstance(raw, dict):
            try:
                return cls.of(raw.get("ascii_code", 0), raw["fg"], raw["bg"], raw.get("transparent", False))
            except KeyError as exc:
                raise InvalidGrid(f"cell is missing {exc.args[0]!r}") from exc
        try:
            return cls.of(raw.ascii_code, raw.fg, raw.bg, getattr(raw, "transparent", False))
        except AttributeError as exc:
            raise InvalidGrid(f"not a cell: {raw!r}") from exc


class CellSource(Protocol):
    """Anything exposing a flattened cell grid."""

    cols: int
    rows: int

    def get(self, x: int, y: int) -> Cell | None: ...


class LayeredImage(Protocol):
    """Parsed multi-layer image supplied by an external ``.xp`` reader."""

    width: int
    height: int

    def merge_layers(self, selection: Any = "all") -> CellSource | None: ...


@dataclass(frozen=True)
class Grid:
    cols: int
    rows: int
    cells: tuple[Cell | None, ...]

    def __post_init__(self) -> None:
        if self.cols <= 0 or self.rows <= 0:
            raise InvalidGrid(f"grid must have at least one row and column, got {self.cols}x{self.rows}")
        object.__setattr__(self, "cells", tuple(Cell.coerce(c) for c in self.cells))
        if len(self.cells) != self.cols * self.rows:
            raise InvalidGrid(f"grid {self.cols}x{self.rows} needs {self.cols * self.rows} cells, got {len(self.cells)}")

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Cell | None]]) -> "Grid":
        if not rows or not rows[0]:
            raise InvalidGrid("grid must have at least one row and column")
        cols = len(rows[0])
        if any(len(row) != cols for row in rows):
            raise InvalidGrid("grid rows must all have the same length")
        return cls(cols=cols, rows=len(rows), cells=tuple(c for row in rows for c in row))

    def get(self, x: int, y: int) -> Cell | None:
        return self.cells[y * self.cols + x]


class CellView:
    """Presents any ``cols``/``rows``/``get`` source as ``Cell`` values."""

    def __init__(self, source: Any, cols: int | None = None, rows: int | None = None) -> None:
        self.source = source
        self.cols = source.cols if cols is None else cols
        self.rows = source.rows if rows is None else rows

    @classmethod
    def wrap(cls, source: Any) -> "CellView | Grid":
        if isinstance(source, (cls, Grid)):
            return source
        return cls(source)

    def get(self, x: int, y: int) -> Cell | None:
        return Cell.coerce(self.source.get(x, y))


@dataclass(frozen=True, eq=False)
class Frame:
    width: int
    height: int
    pixels: np.ndarray  # (height, width, 4) uint8 RGBA

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        return tuple(int(c) for c in self.pixels[y, x])  # type: ignore[return-value]

    def region(self, x: int, y: int, w: int, h: int) -> np.ndarray:
        return self.pixels[y : y + h, x : x + w]


@dataclass(frozen=True)
class RenderOptions:
    background: ColorLike = TRANSPARENT
    layers: Any = "all"

    def background_rgba(self) -> tuple[int, int, int, int]:
        if isinstance(self.background, str) and self.background.strip().lower() == TRANSPARENT:
            return (0, 0, 0, 0)
        return parse_color(self.background)
