"""Error taxonomy shared by the font, renderer and CLI packages."""

from __future__ import annotations


class RexRasterError(Exception):
    """Base class for every failure raised by rexraster."""


class FontLoadError(RexRasterError):
    """The font sheet could not be read or decoded."""


class InvalidFontLayout(RexRasterError):
    """The font sheet does not describe a usable 16x16 glyph grid."""


class ColorKeyLockedError(RexRasterError):
    """The transparency key was changed after an atlas was built with it."""


class AtlasNotReady(RexRasterError):
    """A render was attempted without a built atlas."""


class InvalidGrid(RexRasterError):
    """The cell grid is empty or inconsistent."""


class InvalidColor(RexRasterError):
    """A color value could not be parsed."""


class RenderCancelled(RexRasterError):
    """The render was cancelled before completion; the frame was discarded."""


class OutputError(RexRasterError):
    """The frame could not be encoded or written to the requested sink."""
