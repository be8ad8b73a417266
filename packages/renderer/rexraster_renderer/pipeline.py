"""High-level rendering: layered images or grids in, frames, files or data URIs out."""

from __future__ import annotations

import asyncio
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Union

from rexraster_core.errors import AtlasNotReady, InvalidGrid
from rexraster_core.logging_setup import get_logger
from rexraster_font.loader import AtlasLoader, default_loader
from rexraster_font.models import Atlas

from . import export
from .buffers import BufferFactory
from .compositor import new_buffer, render_frame
from .models import CellSource, CellView, Frame, LayeredImage, RenderOptions

log = get_logger("render")


class OutputUri(Enum):
    PNG = "png"
    JPEG = "jpeg"


OUTPUT_URI = OUTPUT_URI_PNG = OutputUri.PNG
OUTPUT_URI_JPEG = OutputUri.JPEG

Output = Union[str, Path, OutputUri, None]


def _is_layered(source: Any) -> bool:
    return hasattr(source, "merge_layers")


def render_image(
    image: LayeredImage,
    atlas: Atlas | None,
    options: RenderOptions | None = None,
    **render_kwargs: Any,
) -> Frame:
    """Merge the image's selected layers and render the result.

    When the merge yields nothing the frame holds only the background fill.
    """
    options = options or RenderOptions()
    if atlas is None:
        raise AtlasNotReady("a built font atlas is required to render")
    merged = image.merge_layers(options.layers)
    if merged is None:
        if image.width <= 0 or image.height <= 0:
            raise InvalidGrid(f"image must have at least one row and column, got {image.width}x{image.height}")
        buffer = new_buffer(
            image.width * atlas.char_width,
            image.height * atlas.char_height,
            options,
            render_kwargs.get("buffer_factory"),
        )
        return buffer.to_frame()
    cols = getattr(merged, "cols", None) or getattr(merged, "width", image.width)
    rows = getattr(merged, "rows", None) or getattr(merged, "height", image.height)
    return render_frame(CellView(merged, cols, rows), atlas, options, **render_kwargs)


def _resolve_atlas(atlas: Atlas | None, loader: AtlasLoader | None, timeout: float | None) -> Atlas:
    if atlas is not None:
        return atlas
    return (loader or default_loader()).wait(timeout)


def _render_any(source: CellSource | LayeredImage, atlas: Atlas, options: RenderOptions, **kwargs: Any) -> Frame:
    if _is_layered(source):
        return render_image(source, atlas, options, **kwargs)  # type: ignore[arg-type]
    return render_frame(source, atlas, options, **kwargs)  # type: ignore[arg-type]


def _emit(frame: Frame, output: Output, quality: int) -> Frame | Path | str:
    if output is None:
        return frame
    if isinstance(output, OutputUri):
        return export.to_data_uri(frame, output.value, quality)
    path = export.save(frame, output, quality=quality)
    log.info("frame written", extra={"event": "frame_written", "path": str(path)})
    return path


def render(
    source: CellSource | LayeredImage,
    options: RenderOptions | None = None,
    *,
    atlas: Atlas | None = None,
    loader: AtlasLoader | None = None,
    output: Output = None,
    timeout: float | None = None,
    quality: int = 90,
    buffer_factory: BufferFactory | None = None,
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> Frame | Path | str:
    """Render a grid or layered image.

    Returns the ``Frame`` when ``output`` is None, the written ``Path`` when it is a
    path, and a data URI string for ``OUTPUT_URI_PNG`` / ``OUTPUT_URI_JPEG``.
    Without an explicit ``atlas`` the loader's cached or in-flight atlas is awaited.
    """
    options = options or RenderOptions()
    resolved = _resolve_atlas(atlas, loader, timeout)
    frame = _render_any(source, resolved, options, buffer_factory=buffer_factory, workers=workers, cancel=cancel)
    return _emit(frame, output, quality)


async def render_async(
    source: CellSource | LayeredImage,
    options: RenderOptions | None = None,
    *,
    atlas: Atlas | None = None,
    loader: AtlasLoader | None = None,
    output: Output = None,
    quality: int = 90,
    buffer_factory: BufferFactory | None = None,
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> Frame | Path | str:
    options = options or RenderOptions()
    if atlas is None:
        atlas = await (loader or default_loader()).wait_async()
    frame = await asyncio.to_thread(
        _render_any, source, atlas, options, buffer_factory=buffer_factory, workers=workers, cancel=cancel
    )
    return await asyncio.to_thread(_emit, frame, output, quality)
