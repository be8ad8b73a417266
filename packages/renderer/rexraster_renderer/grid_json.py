"""JSON cell-grid documents, used where no ``.xp`` reader is wired in."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rexraster_core.errors import InvalidColor, InvalidGrid

from .models import Cell, Grid


def _cell_from_obj(obj: Any, index: int) -> Cell | None:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise InvalidGrid(f"cell {index} must be an object")
    try:
        return Cell.of(
            ascii_code=int(obj.get("ascii_code", 0)),
            fg=obj.get("fg", (255, 255, 255)),
            bg=obj.get("bg", (0, 0, 0)),
            transparent=bool(obj.get("transparent", False)),
        )
    except (TypeError, ValueError, InvalidColor) as exc:
        raise InvalidGrid(f"cell {index}: {exc}") from exc


def grid_from_dict(data: dict[str, Any]) -> Grid:
    if not isinstance(data, dict):
        raise InvalidGrid("grid document must be an object")
    try:
        cols = int(data["cols"])
        rows = int(data["rows"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidGrid(f"grid document needs integer cols and rows: {exc}") from exc
    cells = data.get("cells") or []
    if not isinstance(cells, list):
        raise InvalidGrid("grid cells must be a list")
    return Grid(cols=cols, rows=rows, cells=tuple(_cell_from_obj(c, i) for i, c in enumerate(cells)))


def grid_to_dict(grid: Grid) -> dict[str, Any]:
    return {
        "cols": grid.cols,
        "rows": grid.rows,
        "cells": [
            None
            if c is None
            else {
                "ascii_code": c.ascii_code,
                "fg": list(c.fg),
                "bg": list(c.bg),
                "transparent": c.transparent,
            }
            for c in grid.cells
        ],
    }


def load_grid(path: Path) -> Grid:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except ValueError as exc:
        raise InvalidGrid(f"{path}: not valid JSON: {exc}") from exc
    return grid_from_dict(data)


def dump_grid(grid: Grid, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(grid_to_dict(grid), indent=2), encoding="utf-8")
    return path
