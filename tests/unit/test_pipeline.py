import asyncio
import sys
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace

import numpy as np
from PIL import Image

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "tests"))

from support import sheet_image

from rexraster_core.errors import AtlasNotReady
from rexraster_font import AtlasLoader, build_atlas
from rexraster_renderer import (
    OUTPUT_URI_JPEG,
    OUTPUT_URI_PNG,
    Cell,
    Frame,
    Grid,
    RenderOptions,
    render,
    render_async,
    render_image,
)


class _FakeMerged:
    """Merged layer view whose cells carry plain attributes and dict colors."""

    def __init__(self, width, height, cells):
        self.width = width
        self.height = height
        self._cells = cells

    def get(self, x, y):
        return self._cells.get((x, y))


class _FakeXp:
    def __init__(self, merged, width=2, height=1):
        self.width = width
        self.height = height
        self.merged = merged
        self.selections = []

    def merge_layers(self, selection="all"):
        self.selections.append(selection)
        return self.merged


def _atlas():
    return build_atlas(sheet_image(2, 2, {0: ["#.", ".#"], 1: ["##", "##"]}))


class RenderImageTests(unittest.TestCase):
    def test_merges_selected_layers(self):
        cell = SimpleNamespace(ascii_code=1, fg={"r": 9, "g": 8, "b": 7}, bg={"r": 0, "g": 0, "b": 0}, transparent=False)
        image = _FakeXp(_FakeMerged(2, 1, {(1, 0): cell}))
        frame = render_image(image, _atlas(), RenderOptions(layers=[0, 2]))
        self.assertEqual(image.selections, [[0, 2]])
        self.assertEqual((frame.width, frame.height), (4, 2))
        np.testing.assert_array_equal(frame.region(2, 0, 2, 2), np.full((2, 2, 4), (9, 8, 7, 255)))
        np.testing.assert_array_equal(frame.region(0, 0, 2, 2), np.zeros((2, 2, 4)))

    def test_empty_merge_yields_background(self):
        image = _FakeXp(None, width=3, height=2)
        frame = render_image(image, _atlas(), RenderOptions(background="white"))
        self.assertEqual((frame.width, frame.height), (6, 4))
        self.assertTrue((frame.pixels == 255).all())

    def test_requires_atlas(self):
        with self.assertRaises(AtlasNotReady):
            render_image(_FakeXp(None), None)


class RenderPipelineTests(unittest.TestCase):
    def setUp(self):
        self.grid = Grid.from_rows([[Cell.of(0, (255, 0, 0), (0, 0, 255))]])

    def test_waits_on_loader(self):
        loader = AtlasLoader()
        loader.load(sheet_image(2, 2, {0: ["#.", ".#"]}))
        frame = render(self.grid, loader=loader)
        self.assertIsInstance(frame, Frame)
        self.assertEqual(frame.pixel(0, 0), (255, 0, 0, 255))

    def test_unrequested_loader(self):
        with self.assertRaises(AtlasNotReady):
            render(self.grid, loader=AtlasLoader())

    def test_writes_output_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            out = render(self.grid, atlas=_atlas(), output=str(Path(tmp) / "cell.png"))
            self.assertTrue(out.exists())
            with Image.open(out) as img:
                self.assertEqual(img.size, (2, 2))
                self.assertEqual(img.getpixel((1, 0)), (0, 0, 255, 255))

    def test_data_uri_outputs(self):
        self.assertTrue(render(self.grid, atlas=_atlas(), output=OUTPUT_URI_PNG).startswith("data:image/png;base64,"))
        self.assertTrue(render(self.grid, atlas=_atlas(), output=OUTPUT_URI_JPEG).startswith("data:image/jpeg;base64,"))

    def test_layered_source(self):
        image = _FakeXp(Grid.from_rows([[Cell.of(1, (1, 1, 1), (2, 2, 2)), None]]))
        frame = render(image, atlas=_atlas())
        self.assertEqual(frame.pixel(0, 0), (1, 1, 1, 255))
        self.assertEqual(image.selections, ["all"])

    def test_plain_cell_source(self):
        cells = {(0, 0): SimpleNamespace(ascii_code=0, fg={"r": 255, "g": 0, "b": 0}, bg={"r": 0, "g": 0, "b": 255})}
        source = _FakeMerged(1, 1, cells)
        source.cols, source.rows = 1, 1
        frame = render(source, atlas=_atlas())
        self.assertEqual(frame.pixel(0, 0), (255, 0, 0, 255))
        self.assertEqual(frame.pixel(1, 0), (0, 0, 255, 255))

    def test_render_async(self):
        loader = AtlasLoader()

        async def scenario():
            load = asyncio.create_task(loader.load_async(sheet_image(2, 2, {0: ["#.", ".#"]})))
            while loader.builds == 0:
                await asyncio.sleep(0.001)
            frame = await render_async(self.grid, loader=loader)
            await load
            return frame

        frame = asyncio.run(scenario())
        self.assertEqual(frame.pixel(1, 0), (0, 0, 255, 255))


if __name__ == "__main__":
    unittest.main()
