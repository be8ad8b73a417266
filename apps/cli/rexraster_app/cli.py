"""CLI entrypoints for rendering cell grids, inspecting fonts and benchmarking."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from importlib import metadata
from pathlib import Path

from rexraster_core import (
    AppConfig,
    PerformanceTargets,
    RenderProfiler,
    RexRasterError,
    config_path,
    load_config,
    save_config,
)
from rexraster_core.logging_setup import configure_logging, get_logger
from rexraster_font import Atlas, default_loader
from rexraster_renderer import RenderOptions, get_backend, load_grid, render_frame
from rexraster_renderer.export import OutputFormat, save, to_data_uri

log = get_logger("cli")


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _installed_version() -> str:
    try:
        return metadata.version("rexraster")
    except metadata.PackageNotFoundError:
        return "0.1.0"


def _load_cfg(args: argparse.Namespace) -> AppConfig:
    return load_config(Path(args.config).expanduser() if args.config else None)


def _load_atlas(args: argparse.Namespace, cfg: AppConfig) -> Atlas:
    font = args.font or cfg.font.path
    if not font:
        raise RexRasterError("no font sheet given; pass --font or set font.path in the config")
    loader = default_loader()
    loader.background_color = args.color_key or cfg.font.color_key
    return loader.load(
        Path(font).expanduser(),
        char_width=args.char_width or cfg.font.char_width,
        char_height=args.char_height or cfg.font.char_height,
    )


def _render_options(args: argparse.Namespace, cfg: AppConfig) -> RenderOptions:
    return RenderOptions(background=args.background or cfg.render.background, layers=cfg.render.layers)


def cmd_render(args: argparse.Namespace) -> int:
    cfg = _load_cfg(args)
    atlas = _load_atlas(args, cfg)
    grid = load_grid(Path(args.grid))
    frame = render_frame(
        grid,
        atlas,
        _render_options(args, cfg),
        buffer_factory=get_backend(args.backend or cfg.render.backend),
        workers=args.workers or cfg.render.workers,
    )

    fmt = args.format or (Path(args.out).suffix if args.out else "") or cfg.output.format
    if args.data_uri:
        print(to_data_uri(frame, fmt, cfg.output.jpeg_quality))
        return 0

    out = Path(args.out) if args.out else Path(args.grid).with_suffix("." + OutputFormat.parse(fmt).value)
    written = save(frame, out, fmt, cfg.output.jpeg_quality)
    _print_json(
        {
            "success": True,
            "output": str(written),
            "format": OutputFormat.parse(fmt).value,
            "width": frame.width,
            "height": frame.height,
            "grid": {"cols": grid.cols, "rows": grid.rows},
        }
    )
    return 0


def cmd_font_info(args: argparse.Namespace) -> int:
    cfg = _load_cfg(args)
    atlas = _load_atlas(args, cfg)
    counts = atlas.ink_counts()
    cell_pixels = atlas.char_width * atlas.char_height
    _print_json(
        {
            "sheet": {
                "width": atlas.sheet.width if atlas.sheet else None,
                "height": atlas.sheet.height if atlas.sheet else None,
            },
            "char_width": atlas.char_width,
            "char_height": atlas.char_height,
            "color_key": f"0x{atlas.background_color:08X}",
            "glyphs": atlas.glyph_count,
            "ink_pixels": sum(counts),
            "blank_glyphs": [i for i, n in enumerate(counts) if n == 0],
            "solid_glyphs": [i for i, n in enumerate(counts) if n == cell_pixels],
        }
    )
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    cfg = _load_cfg(args)
    atlas = _load_atlas(args, cfg)
    grid = load_grid(Path(args.grid))
    options = _render_options(args, cfg)
    factory = get_backend(args.backend or cfg.render.backend)
    workers = args.workers or cfg.render.workers

    profiler = RenderProfiler(PerformanceTargets(fps_min=args.fps_min))
    for _ in range(max(1, args.iterations)):
        profiler.measure(render_frame, grid, atlas, options, buffer_factory=factory, workers=workers)

    report = profiler.report()
    payload = asdict(report)
    payload["backend"] = args.backend or cfg.render.backend
    payload["workers"] = workers
    payload["grid"] = {"cols": grid.cols, "rows": grid.rows}
    _print_json(payload)
    return 0 if report.passed else 1


def cmd_config(args: argparse.Namespace) -> int:
    path = Path(args.config).expanduser() if args.config else config_path()
    if args.config_cmd == "path":
        print(path)
        return 0
    if args.config_cmd == "init":
        if path.exists() and not args.force:
            print(f"config already exists: {path}", file=sys.stderr)
            return 1
        _print_json({"written": str(save_config(AppConfig(), path))})
        return 0
    _print_json(asdict(load_config(path)))
    return 0


def _add_font_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--font", default=None, help="Font sheet image (16x16 glyph grid)")
    cmd.add_argument("--char-width", type=int, default=None, help="Glyph width override in pixels")
    cmd.add_argument("--char-height", type=int, default=None, help="Glyph height override in pixels")
    cmd.add_argument("--color-key", default=None, help="Packed RGBA treated as non-ink, e.g. 0xFF00FFFF")


def _add_render_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--grid", required=True, help="Path to a JSON cell grid")
    cmd.add_argument("--background", default=None, help="Background fill color or 'transparent'")
    cmd.add_argument("--backend", choices=["array", "image", "bytes"], default=None)
    cmd.add_argument("--workers", type=int, default=None, help="Render rows on this many threads")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rexraster", description="Render REXPaint-style cell grids with bitmap fonts")
    parser.add_argument("--config", default=None, help="Config file path (default: per-user config)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_installed_version()}")
    sub = parser.add_subparsers(dest="command", required=True)

    render_cmd = sub.add_parser("render", help="Render a cell grid to an image")
    _add_render_args(render_cmd)
    _add_font_args(render_cmd)
    render_cmd.add_argument("--out", default=None, help="Output image path (default: grid path with image suffix)")
    render_cmd.add_argument("--format", choices=["png", "jpeg", "bmp"], default=None)
    render_cmd.add_argument("--data-uri", action="store_true", help="Print a data URI instead of writing a file")
    render_cmd.set_defaults(func=cmd_render)

    info_cmd = sub.add_parser("font-info", help="Describe the glyph atlas built from a font sheet")
    _add_font_args(info_cmd)
    info_cmd.set_defaults(func=cmd_font_info)

    bench_cmd = sub.add_parser("benchmark", help="Render a grid repeatedly and report throughput")
    _add_render_args(bench_cmd)
    _add_font_args(bench_cmd)
    bench_cmd.add_argument("--iterations", type=int, default=20)
    bench_cmd.add_argument("--fps-min", type=float, default=1.0)
    bench_cmd.set_defaults(func=cmd_benchmark)

    config_cmd = sub.add_parser("config", help="Show or initialize settings")
    config_sub = config_cmd.add_subparsers(dest="config_cmd", required=True)
    config_sub.add_parser("show", help="Print effective settings")
    config_sub.add_parser("path", help="Print the settings file path")
    init_cmd = config_sub.add_parser("init", help="Write default settings")
    init_cmd.add_argument("--force", action="store_true", help="Overwrite an existing file")
    config_cmd.set_defaults(func=cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = _load_cfg(args)
    configure_logging(level=cfg.logging.level, keep_files=cfg.logging.keep_files, console=cfg.logging.console)
    try:
        return int(args.func(args))
    except (RexRasterError, OSError, ValueError) as exc:
        log.error("command failed", extra={"event": "command_failed", "command": args.command, "error": str(exc)})
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
