"""Frame encoding to PNG/JPEG/BMP bytes, data URIs and files."""

from __future__ import annotations

import base64
from enum import Enum
from io import BytesIO
from pathlib import Path

from PIL import Image

from rexraster_core.errors import OutputError

from .models import Frame


class OutputFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    BMP = "bmp"

    @property
    def mime(self) -> str:
        return f"image/{self.value}"

    @classmethod
    def parse(cls, value: "OutputFormat | str") -> "OutputFormat":
        if isinstance(value, OutputFormat):
            return value
        name = str(value).lower().lstrip(".")
        if name == "jpg":
            name = "jpeg"
        try:
            return cls(name)
        except ValueError:
            raise OutputError(f"unsupported output format: {value!r}") from None


def to_image(frame: Frame) -> Image.Image:
    return Image.fromarray(frame.pixels)


def encode(frame: Frame, fmt: OutputFormat | str = OutputFormat.PNG, quality: int = 90) -> bytes:
    fmt = OutputFormat.parse(fmt)
    image = to_image(frame)
    buf = BytesIO()
    if fmt is OutputFormat.JPEG:
        image.convert("RGB").save(buf, format="JPEG", quality=quality)
    elif fmt is OutputFormat.BMP:
        image.save(buf, format="BMP")
    else:
        image.save(buf, format="PNG")
    return buf.getvalue()


def to_data_uri(frame: Frame, fmt: OutputFormat | str = OutputFormat.PNG, quality: int = 90) -> str:
    fmt = OutputFormat.parse(fmt)
    b64 = base64.b64encode(encode(frame, fmt, quality)).decode("ascii")
    return f"data:{fmt.mime};base64,{b64}"


def save(frame: Frame, path: Path | str, fmt: OutputFormat | str | None = None, quality: int = 90) -> Path:
    path = Path(path)
    fmt = OutputFormat.parse(fmt or path.suffix or OutputFormat.PNG)
    data = encode(frame, fmt, quality)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        raise OutputError(f"cannot write {path}: {exc}") from exc
    return path
