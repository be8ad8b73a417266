"""Core services for rexraster: settings, logging, profiling and the error taxonomy."""

from .config import AppConfig, config_path, load_config, save_config
from .errors import (
    AtlasNotReady,
    ColorKeyLockedError,
    FontLoadError,
    InvalidColor,
    InvalidFontLayout,
    InvalidGrid,
    OutputError,
    RenderCancelled,
    RexRasterError,
)
from .performance import PerformanceTargets, ProfileReport, RenderProfiler

__all__ = [
    "AppConfig",
    "AtlasNotReady",
    "ColorKeyLockedError",
    "FontLoadError",
    "InvalidColor",
    "InvalidFontLayout",
    "InvalidGrid",
    "OutputError",
    "PerformanceTargets",
    "ProfileReport",
    "RenderCancelled",
    "RenderProfiler",
    "RexRasterError",
    "config_path",
    "load_config",
    "save_config",
]
