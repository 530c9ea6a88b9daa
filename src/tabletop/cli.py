"""CLI entry point for the tabletop object detector.

Usage:
    tabletop detect frame_000.ply frame_001.ply   # Run one detection pass
    tabletop info                                 # Show effective config
    tabletop schema                               # Config JSON schema
    tabletop schema plane_segmentation            # One step's config schema
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from tabletop.core.logging import setup_logging

app = typer.Typer(name="tabletop", help="Tabletop object detection on RGB-D point clouds")
console = Console()

DEFAULT_CONFIG = Path("configs/detector.yaml")


def _load_config(config: Path):
    from tabletop.core.config import DetectorConfig, load_detector_config

    if config.exists():
        return load_detector_config(config)
    if config != DEFAULT_CONFIG:
        console.print(f"[red]Config not found: {config}[/red]")
        raise typer.Exit(1)
    return DetectorConfig()


def _apply_overrides(cfg, num_frames: Optional[int] = None, seed: Optional[int] = None):
    """Revalidate the config with CLI overrides applied."""
    from pydantic import ValidationError
    from rich.markup import escape

    from tabletop.core.config import DetectorConfig

    raw = cfg.model_dump()
    if num_frames is not None:
        raw["aggregation"]["num_frames"] = num_frames
    if seed is not None:
        raw["plane"]["seed"] = seed
    try:
        return DetectorConfig.model_validate(raw)
    except ValidationError as e:
        console.print(f"[red]Invalid option: {escape(str(e))}[/red]")
        raise typer.Exit(2)


@app.command()
def detect(
    frames: List[Path] = typer.Argument(..., help="PLY frames, cycled as the sensor stream"),
    config: Path = typer.Option(DEFAULT_CONFIG, help="Detector config path"),
    num_frames: Optional[int] = typer.Option(None, "--frames", "-k", help="Frames to aggregate (overrides config)"),
    rate: float = typer.Option(30.0, help="Frame publish rate (Hz)"),
    seed: Optional[int] = typer.Option(None, help="RANSAC seed (overrides config)"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Write plane/cluster PLYs + result.json"),
    debug_dir: Optional[Path] = typer.Option(None, help="Write intermediate debug clouds here"),
    log_level: str = typer.Option("INFO", help="Logging level"),
    log_file: Optional[Path] = typer.Option(None, help="Also append log records to this file"),
) -> None:
    """Run one detection pass over the given frames."""
    setup_logging(log_level, log_file)
    from tabletop.core.debug_sink import PlyDebugSink
    from tabletop.core.detector import ObjectDetector
    from tabletop.core.frames import LatestFrameSlot, PlyFrameFeeder
    from tabletop.utils.io import write_ply_cloud

    cfg = _apply_overrides(_load_config(config), num_frames=num_frames, seed=seed)

    missing = [p for p in frames if not p.exists()]
    if missing:
        console.print(f"[red]Frame file(s) not found: {', '.join(map(str, missing))}[/red]")
        raise typer.Exit(1)

    slot = LatestFrameSlot()
    sink = PlyDebugSink(debug_dir) if debug_dir else None
    detector = ObjectDetector(cfg, frame_source=slot, debug_sink=sink)

    with PlyFrameFeeder.from_files(slot, frames, rate_hz=rate):
        result = detector.detect()

    if not result.is_plane_found:
        console.print("[yellow]No plane found[/yellow]")
    else:
        a, b, c, d = result.plane_coefficients
        console.print(f"[green]Plane:[/green] {a:.4f}x + {b:.4f}y + {c:.4f}z + {d:.4f} = 0")
        table = Table(title=f"Objects on plane ({len(result.clusters)})")
        table.add_column("#", style="dim")
        table.add_column("Points", style="cyan")
        table.add_column("Centroid (m)", style="green")
        table.add_column("Mean RGB", style="magenta")
        table.add_column("Min dist (m)", style="yellow")
        for s in result.summaries:
            table.add_row(
                str(s.index),
                str(s.num_points),
                ", ".join(f"{v:.3f}" for v in s.centroid),
                ", ".join(f"{v:.0f}" for v in s.mean_color),
                f"{s.min_distance:.4f}",
            )
        console.print(table)

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
        if result.is_plane_found:
            write_ply_cloud(output_dir / "plane.ply", result.plane_cloud)
            for i, cluster in enumerate(result.clusters):
                write_ply_cloud(output_dir / f"cluster_{i:02d}.ply", cluster)
        with open(output_dir / "result.json", "w", encoding="utf-8") as f:
            json.dump(result.report(), f, indent=2)
        console.print(f"[green]Results written to {output_dir}[/green]")


@app.command()
def info(config: Path = typer.Option(DEFAULT_CONFIG, help="Detector config path")) -> None:
    """Show the effective detector configuration."""
    from tabletop.core.config import flatten_config

    cfg = _load_config(config)
    table = Table(title="Detector configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in flatten_config(cfg):
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def schema(
    step: Optional[str] = typer.Argument(None, help="Step name (e.g. plane_segmentation); whole detector if omitted"),
) -> None:
    """Print the configuration JSON schema."""
    from tabletop.core.config import DetectorConfig
    from tabletop.core.detector import STEP_CLASSES

    if step is None:
        console.print_json(json.dumps(DetectorConfig.model_json_schema()))
        return

    steps = {cls.name: cls for cls in STEP_CLASSES}
    if step not in steps:
        console.print(f"[red]Unknown step: {step}. Choose from: {', '.join(steps)}[/red]")
        raise typer.Exit(1)
    console.print_json(json.dumps(steps[step].get_config_schema()))


if __name__ == "__main__":
    app()
