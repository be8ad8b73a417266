"""Cell compositor: paints a flattened cell grid into an RGBA frame.

Every opaque cell covers its ``char_width x char_height`` rectangle with the cell's
foreground where the glyph has ink and its background everywhere else, both fully
opaque. Transparent cells are skipped, so whatever the initial fill left there stays.
Cells write disjoint rectangles, which lets rows be rendered in any order or in
parallel with identical output.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from rexraster_core.errors import AtlasNotReady, InvalidGrid, RenderCancelled
from rexraster_core.logging_setup import get_logger
from rexraster_font.models import GLYPH_COUNT, Atlas

from .buffers import ArrayBuffer, BufferFactory, PixelBuffer
from .models import Cell, CellSource, CellView, Frame, RenderOptions

log = get_logger("render")


def shade_cell(ink: np.ndarray, cell: Cell) -> np.ndarray:
    """Return the ``(h, w, 4)`` RGBA block for one opaque cell."""
    block = np.empty(ink.shape + (4,), dtype=np.uint8)
    block[...] = cell.bg.rgba(255)
    block[ink] = cell.fg.rgba(255)
    return block


def _write_block(buffer: PixelBuffer, sx: int, sy: int, block: np.ndarray) -> None:
    write_block = getattr(buffer, "write_block", None)
    if write_block is not None:
        write_block(sx, sy, block)
        return
    h, w = block.shape[:2]
    for dy in range(h):
        for dx in range(w):
            buffer.write_pixel(sx + dx, sy + dy, tuple(int(c) for c in block[dy, dx]))


def frame_size(grid: CellSource, atlas: Atlas) -> tuple[int, int]:
    return grid.cols * atlas.char_width, grid.rows * atlas.char_height


def _check_inputs(grid: CellSource | None, atlas: Atlas | None) -> None:
    if atlas is None:
        raise AtlasNotReady("a built font atlas is required to render")
    if grid is None or grid.cols <= 0 or grid.rows <= 0:
        dims = "none" if grid is None else f"{grid.cols}x{grid.rows}"
        raise InvalidGrid(f"grid must have at least one row and column, got {dims}")


def new_buffer(
    width: int,
    height: int,
    options: RenderOptions,
    buffer_factory: BufferFactory | None = None,
) -> PixelBuffer:
    buffer = (buffer_factory or ArrayBuffer)(width, height)
    buffer.fill(options.background_rgba())
    return buffer


class _RowPainter:
    def __init__(self, grid: CellSource, atlas: Atlas, buffer: PixelBuffer, cancel: threading.Event | None) -> None:
        self.grid = grid
        self.atlas = atlas
        self.buffer = buffer
        self.cancel = cancel
        self._blocks: dict[tuple[int, Cell], np.ndarray] = {}

    def block_for(self, cell: Cell) -> np.ndarray:
        index = cell.ascii_code % GLYPH_COUNT
        key = (index, cell)
        block = self._blocks.get(key)
        if block is None:
            block = shade_cell(self.atlas.ink[index], cell)
            self._blocks[key] = block
        return block

    def paint_row(self, y: int) -> int:
        if self.cancel is not None and self.cancel.is_set():
            raise RenderCancelled("render cancelled")
        cw, ch = self.atlas.char_width, self.atlas.char_height
        drawn = 0
        for x in range(self.grid.cols):
            cell = self.grid.get(x, y)
            if cell is None or cell.transparent:
                continue
            _write_block(self.buffer, x * cw, y * ch, self.block_for(cell))
            drawn += 1
        return drawn


def render_frame(
    grid: CellSource,
    atlas: Atlas | None,
    options: RenderOptions | None = None,
    *,
    buffer_factory: BufferFactory | None = None,
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> Frame:
    _check_inputs(grid, atlas)
    grid = CellView.wrap(grid)
    options = options or RenderOptions()
    start = time.perf_counter()

    width, height = frame_size(grid, atlas)
    buffer = new_buffer(width, height, options, buffer_factory)
    painter = _RowPainter(grid, atlas, buffer, cancel)

    try:
        if workers > 1 and buffer.supports_parallel and grid.rows > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rexraster-row") as pool:
                drawn = sum(pool.map(painter.paint_row, range(grid.rows)))
        else:
            drawn = sum(painter.paint_row(y) for y in range(grid.rows))
        if cancel is not None and cancel.is_set():
            raise RenderCancelled("render cancelled")
    except RenderCancelled:
        log.info("render cancelled", extra={"event": "render_cancelled", "width": width, "height": height})
        raise

    frame = buffer.to_frame()
    log.debug(
        "frame rendered",
        extra={
            "event": "frame_rendered",
            "width": width,
            "height": height,
            "cells_drawn": drawn,
            "cells_total": grid.cols * grid.rows,
            "workers": workers,
            "duration_s": round(time.perf_counter() - start, 6),
        },
    )
    return frame
