"""Interchangeable RGBA pixel buffers the compositor draws into."""

from __future__ import annotations

from typing import Callable, Protocol

import numpy as np
from PIL import Image

from .models import Frame

RGBA = tuple[int, int, int, int]


class PixelBuffer(Protocol):
    width: int
    height: int
    # True when disjoint regions may be written from several threads at once.
    supports_parallel: bool

    def fill(self, rgba: RGBA) -> None: ...

    def read_pixel(self, x: int, y: int) -> RGBA: ...

    def write_pixel(self, x: int, y: int, rgba: RGBA) -> None: ...

    def to_frame(self) -> Frame: ...


BufferFactory = Callable[[int, int], PixelBuffer]


class ArrayBuffer:
    """numpy ``(h, w, 4)`` array; cell blocks are written with slice assignment."""

    supports_parallel = True

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    def fill(self, rgba: RGBA) -> None:
        self.pixels[...] = rgba

    def read_pixel(self, x: int, y: int) -> RGBA:
        return tuple(int(c) for c in self.pixels[y, x])  # type: ignore[return-value]

    def write_pixel(self, x: int, y: int, rgba: RGBA) -> None:
        self.pixels[y, x] = rgba

    def write_block(self, x: int, y: int, block: np.ndarray) -> None:
        h, w = block.shape[:2]
        self.pixels[y : y + h, x : x + w] = block

    def to_frame(self) -> Frame:
        return Frame(width=self.width, height=self.height, pixels=self.pixels)


class ImageBuffer:
    """Pillow RGBA canvas; cell blocks are pasted as images."""

    supports_parallel = False

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    def fill(self, rgba: RGBA) -> None:
        self.image.paste(rgba, (0, 0, self.width, self.height))

    def read_pixel(self, x: int, y: int) -> RGBA:
        return self.image.getpixel((x, y))  # type: ignore[return-value]

    def write_pixel(self, x: int, y: int, rgba: RGBA) -> None:
        self.image.putpixel((x, y), rgba)

    def write_block(self, x: int, y: int, block: np.ndarray) -> None:
        self.image.paste(Image.fromarray(block), (x, y))

    def to_frame(self) -> Frame:
        return Frame(width=self.width, height=self.height, pixels=np.array(self.image, dtype=np.uint8))


class BytesBuffer:
    """Flat ``bytearray`` written one pixel at a time."""

    supports_parallel = True

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.data = bytearray(width * height * 4)

    def _offset(self, x: int, y: int) -> int:
        return (y * self.width + x) * 4

    def fill(self, rgba: RGBA) -> None:
        self.data[:] = bytes(rgba) * (self.width * self.height)

    def read_pixel(self, x: int, y: int) -> RGBA:
        off = self._offset(x, y)
        return tuple(self.data[off : off + 4])  # type: ignore[return-value]

    def write_pixel(self, x: int, y: int, rgba: RGBA) -> None:
        off = self._offset(x, y)
        self.data[off : off + 4] = bytes(rgba)

    def to_frame(self) -> Frame:
        pixels = np.frombuffer(bytes(self.data), dtype=np.uint8).reshape(self.height, self.width, 4).copy()
        return Frame(width=self.width, height=self.height, pixels=pixels)


BACKENDS: dict[str, BufferFactory] = {
    "array": ArrayBuffer,
    "image": ImageBuffer,
    "bytes": BytesBuffer,
}


def get_backend(name: str | None) -> BufferFactory:
    if not name:
        return ArrayBuffer
    try:
        return BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown buffer backend: {name}") from None
