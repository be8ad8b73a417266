"""Cell-grid compositing into RGBA frames, plus frame export helpers."""

from .buffers import BACKENDS, ArrayBuffer, BytesBuffer, ImageBuffer, PixelBuffer, get_backend
from .compositor import render_frame, shade_cell
from .export import OutputFormat, encode, save, to_data_uri, to_image
from .grid_json import dump_grid, grid_from_dict, grid_to_dict, load_grid
from .models import TRANSPARENT, Cell, CellView, Color, Frame, Grid, LayeredImage, RenderOptions, parse_color
from .pipeline import OUTPUT_URI, OUTPUT_URI_JPEG, OUTPUT_URI_PNG, render, render_async, render_image

__all__ = [
    "ArrayBuffer",
    "BACKENDS",
    "BytesBuffer",
    "Cell",
    "CellView",
    "Color",
    "Frame",
    "Grid",
    "ImageBuffer",
    "LayeredImage",
    "OUTPUT_URI",
    "OUTPUT_URI_JPEG",
    "OUTPUT_URI_PNG",
    "OutputFormat",
    "PixelBuffer",
    "RenderOptions",
    "TRANSPARENT",
    "dump_grid",
    "encode",
    "get_backend",
    "grid_from_dict",
    "grid_to_dict",
    "load_grid",
    "parse_color",
    "render",
    "render_async",
    "render_frame",
    "render_image",
    "save",
    "shade_cell",
    "to_data_uri",
    "to_image",
]
