"""Persistent render settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 1

OUTPUT_FORMATS = ("png", "jpeg", "bmp")
BACKENDS = ("array", "image", "bytes")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class FontConfig:
    path: str | None = None
    char_width: int | None = None
    char_height: int | None = None
    # Packed RGBA, r in the high byte.
    color_key: str = "0x00000000"


@dataclass
class RenderConfig:
    background: str = "transparent"
    layers: str = "all"
    workers: int = 1
    backend: str = "array"


@dataclass
class OutputConfig:
    format: str = "png"
    jpeg_quality: int = 90


@dataclass
class LoggingConfig:
    level: str = "INFO"
    keep_files: int = 7
    console: bool = False


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    font: FontConfig = field(default_factory=FontConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def config_path() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "RexRaster" / "config.json"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "RexRaster" / "config.json"
    return Path.home() / ".config" / "rexraster" / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _optional_positive(value: Any) -> int | None:
    if value is None:
        return None
    try:
        value = int(value)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _normalize_font(cfg: AppConfig) -> None:
    cfg.font.char_width = _optional_positive(cfg.font.char_width)
    cfg.font.char_height = _optional_positive(cfg.font.char_height)
    if isinstance(cfg.font.color_key, int):
        cfg.font.color_key = f"0x{cfg.font.color_key & 0xFFFFFFFF:08X}"


def _normalize_render(cfg: AppConfig) -> None:
    try:
        cfg.render.workers = max(1, min(64, int(cfg.render.workers)))
    except (TypeError, ValueError):
        cfg.render.workers = 1
    if cfg.render.backend not in BACKENDS:
        cfg.render.backend = "array"
    if not cfg.render.background:
        cfg.render.background = "transparent"


def _normalize_output(cfg: AppConfig) -> None:
    fmt = str(cfg.output.format).lower()
    if fmt == "jpg":
        fmt = "jpeg"
    cfg.output.format = fmt if fmt in OUTPUT_FORMATS else "png"
    try:
        cfg.output.jpeg_quality = max(1, min(95, int(cfg.output.jpeg_quality)))
    except (TypeError, ValueError):
        cfg.output.jpeg_quality = 90


def _normalize_logging(cfg: AppConfig) -> None:
    level = str(cfg.logging.level).upper()
    cfg.logging.level = level if level in LOG_LEVELS else "INFO"
    try:
        cfg.logging.keep_files = max(2, int(cfg.logging.keep_files))
    except (TypeError, ValueError):
        cfg.logging.keep_files = 7


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(data, dict):
        return AppConfig()

    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        font=_merge(FontConfig, data.get("font", {})),
        render=_merge(RenderConfig, data.get("render", {})),
        output=_merge(OutputConfig, data.get("output", {})),
        logging=_merge(LoggingConfig, data.get("logging", {})),
    )

    _normalize_font(cfg)
    _normalize_render(cfg)
    _normalize_output(cfg)
    _normalize_logging(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
