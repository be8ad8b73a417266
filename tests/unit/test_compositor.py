import random
import sys
import threading
import unittest
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "tests"))

from support import patterned_sheet, sheet_image

from rexraster_core.errors import AtlasNotReady, InvalidGrid, RenderCancelled
from rexraster_font import build_atlas
from rexraster_renderer import (
    ArrayBuffer,
    BytesBuffer,
    Cell,
    Color,
    Grid,
    ImageBuffer,
    RenderOptions,
    render_frame,
    shade_cell,
)

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def _checker_atlas():
    return build_atlas(sheet_image(2, 2, {0: ["#.", ".#"]}))


def _random_grid(cols: int, rows: int, seed: int = 7) -> Grid:
    rng = random.Random(seed)
    cells = []
    for _ in range(cols * rows):
        cells.append(
            Cell(
                ascii_code=rng.randrange(0, 600),
                fg=Color(rng.randrange(256), rng.randrange(256), rng.randrange(256)),
                bg=Color(rng.randrange(256), rng.randrange(256), rng.randrange(256)),
                transparent=rng.random() < 0.2,
            )
        )
    return Grid(cols=cols, rows=rows, cells=tuple(cells))


class CompositingRuleTests(unittest.TestCase):
    def test_single_cell_checker(self):
        grid = Grid.from_rows([[Cell.of(0, (255, 0, 0), (0, 0, 255))]])
        frame = render_frame(grid, _checker_atlas())
        self.assertEqual((frame.width, frame.height), (2, 2))
        self.assertEqual(frame.pixel(0, 0), RED)
        self.assertEqual(frame.pixel(1, 0), BLUE)
        self.assertEqual(frame.pixel(0, 1), BLUE)
        self.assertEqual(frame.pixel(1, 1), RED)

    def test_transparent_cell_on_transparent_background(self):
        grid = Grid.from_rows([[Cell.of(0, (255, 0, 0), (0, 0, 255), transparent=True)]])
        frame = render_frame(grid, _checker_atlas(), RenderOptions(background="transparent"))
        self.assertTrue((frame.pixels == 0).all())

    def test_transparent_cell_keeps_background_fill(self):
        grid = Grid.from_rows(
            [[Cell.of(0, (255, 0, 0), (0, 0, 255), transparent=True), Cell.of(0, (255, 0, 0), (0, 0, 255))]]
        )
        frame = render_frame(grid, _checker_atlas(), RenderOptions(background="#102030"))
        np.testing.assert_array_equal(frame.region(0, 0, 2, 2), np.full((2, 2, 4), (16, 32, 48, 255)))
        self.assertEqual(frame.pixel(2, 0), RED)

    def test_missing_cells_are_skipped(self):
        grid = Grid.from_rows([[None, Cell.of(0, (255, 0, 0), (0, 0, 255))]])
        frame = render_frame(grid, _checker_atlas(), RenderOptions(background="black"))
        np.testing.assert_array_equal(frame.region(0, 0, 2, 2), np.full((2, 2, 4), (0, 0, 0, 255)))

    def test_glyph_index_wraps(self):
        atlas = _checker_atlas()
        a = render_frame(Grid.from_rows([[Cell.of(0, (9, 9, 9), (1, 2, 3))]]), atlas)
        b = render_frame(Grid.from_rows([[Cell.of(512, (9, 9, 9), (1, 2, 3))]]), atlas)
        self.assertEqual(a.tobytes(), b.tobytes())

    def test_opaque_cells_are_exactly_fg_or_bg(self):
        atlas = build_atlas(patterned_sheet(4, 6))
        grid = _random_grid(9, 5)
        frame = render_frame(grid, atlas, RenderOptions(background=(5, 6, 7)))
        for y in range(grid.rows):
            for x in range(grid.cols):
                cell = grid.get(x, y)
                region = frame.region(x * 4, y * 6, 4, 6)
                if cell.transparent:
                    np.testing.assert_array_equal(region, np.full((6, 4, 4), (5, 6, 7, 255)))
                    continue
                ink = atlas.mask(cell.ascii_code).ink
                is_fg = (region == cell.fg.rgba()).all(axis=2)
                is_bg = (region == cell.bg.rgba()).all(axis=2)
                if cell.fg != cell.bg:
                    np.testing.assert_array_equal(is_fg, ink)
                    np.testing.assert_array_equal(is_bg, ~ink)
                self.assertTrue((is_fg | is_bg).all())

    def test_shade_cell(self):
        ink = np.array([[True, False]])
        block = shade_cell(ink, Cell.of(1, (1, 2, 3), (4, 5, 6)))
        np.testing.assert_array_equal(block, [[[1, 2, 3, 255], [4, 5, 6, 255]]])


class FrameDeterminismTests(unittest.TestCase):
    def setUp(self):
        self.atlas = build_atlas(patterned_sheet(4, 6))
        self.grid = _random_grid(12, 7, seed=3)
        self.options = RenderOptions(background="navy")

    def test_idempotent(self):
        a = render_frame(self.grid, self.atlas, self.options)
        b = render_frame(self.grid, self.atlas, self.options)
        self.assertEqual(a.tobytes(), b.tobytes())

    def test_backends_and_parallelism_agree(self):
        reference = render_frame(self.grid, self.atlas, self.options).tobytes()
        for factory in (ArrayBuffer, ImageBuffer, BytesBuffer):
            for workers in (1, 4):
                with self.subTest(backend=factory.__name__, workers=workers):
                    frame = render_frame(self.grid, self.atlas, self.options, buffer_factory=factory, workers=workers)
                    self.assertEqual(frame.tobytes(), reference)


class _ParsedCell:
    def __init__(self, ascii_code, fg, bg, transparent=False):
        self.ascii_code = ascii_code
        self.fg = fg
        self.bg = bg
        self.transparent = transparent

    __hash__ = None


class _ParsedGrid:
    """Reader-style grid: unhashable cells with dict colors."""

    def __init__(self, rows):
        self.rows = len(rows)
        self.cols = len(rows[0])
        self._rows = rows

    def get(self, x, y):
        return self._rows[y][x]


class CellSourceTests(unittest.TestCase):
    def test_foreign_cells_render_like_grid_cells(self):
        red, blue = {"r": 255, "g": 0, "b": 0}, {"r": 0, "g": 0, "b": 255}
        source = _ParsedGrid(
            [
                [_ParsedCell(0, red, blue), _ParsedCell(0, red, blue, transparent=True)],
                [{"ascii_code": 256, "fg": blue, "bg": red}, None],
            ]
        )
        frame = render_frame(source, _checker_atlas())
        self.assertEqual((frame.width, frame.height), (4, 4))
        self.assertEqual(frame.pixel(0, 0), RED)
        self.assertEqual(frame.pixel(1, 0), BLUE)
        self.assertEqual(frame.pixel(2, 0), (0, 0, 0, 0))
        self.assertEqual(frame.pixel(0, 2), BLUE)
        self.assertEqual(frame.pixel(1, 2), RED)
        self.assertEqual(frame.pixel(3, 3), (0, 0, 0, 0))

    def test_foreign_cells_agree_across_backends(self):
        source = _ParsedGrid([[_ParsedCell(0, {"r": 1, "g": 2, "b": 3}, "white")] * 3] * 3)
        reference = render_frame(source, _checker_atlas()).tobytes()
        for factory in (ImageBuffer, BytesBuffer):
            with self.subTest(backend=factory.__name__):
                frame = render_frame(source, _checker_atlas(), buffer_factory=factory, workers=2)
                self.assertEqual(frame.tobytes(), reference)

    def test_plain_cell_constructor_coerces_colors(self):
        cell = Cell(0, (255, 0, 0), "#0000ff")
        self.assertEqual(cell.fg, Color(255, 0, 0))
        self.assertEqual(cell.bg, Color(0, 0, 255))
        frame = render_frame(Grid(cols=1, rows=1, cells=(cell,)), _checker_atlas())
        self.assertEqual(frame.pixel(0, 0), RED)
        self.assertEqual(frame.pixel(1, 0), BLUE)

    def test_grid_coerces_dict_cells(self):
        grid = Grid(cols=1, rows=1, cells=({"ascii_code": 0, "fg": (255, 0, 0), "bg": (0, 0, 255)},))
        self.assertIsInstance(grid.get(0, 0), Cell)
        self.assertEqual(render_frame(grid, _checker_atlas()).pixel(1, 1), RED)

    def test_unusable_cell(self):
        with self.assertRaises(InvalidGrid):
            render_frame(_ParsedGrid([[object()]]), _checker_atlas())


class RenderPreconditionTests(unittest.TestCase):
    def test_requires_atlas(self):
        grid = Grid.from_rows([[Cell.of(0, (1, 1, 1), (2, 2, 2))]])
        with self.assertRaises(AtlasNotReady):
            render_frame(grid, None)

    def test_empty_grid(self):
        with self.assertRaises(InvalidGrid):
            Grid(cols=0, rows=3, cells=())

        class _Empty:
            cols = 0
            rows = 0

            def get(self, x, y):
                return None

        with self.assertRaises(InvalidGrid):
            render_frame(_Empty(), _checker_atlas())

    def test_cancelled_render_returns_nothing(self):
        cancel = threading.Event()
        cancel.set()
        grid = _random_grid(3, 3)
        with self.assertRaises(RenderCancelled):
            render_frame(grid, build_atlas(patterned_sheet(4, 6)), cancel=cancel)


if __name__ == "__main__":
    unittest.main()
