"""CLI entry point for surface detection.

Usage:
    surfdet detect scan_01.ply scan_02.ply   # Detect surfaces in accumulated clouds
    surfdet info                             # Show effective parameters
    surfdet scan-poses                       # Show the scan sweep poses
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from surfdet.core.logging import setup_logging

app = typer.Typer(name="surfdet", help="Surface detection from accumulated point clouds")
console = Console()

DEFAULT_CONFIG = Path("configs/surface_detection.yaml")
DEFAULT_NAMESPACE = "surface_detection"
DEFAULT_SCAN_NAMESPACE = "robot_scan"


def _load_detection_config(config: Path, namespace: str):
    from surfdet.core.errors import ConfigurationError
    from surfdet.core.params import load_config
    from surfdet.detection.config import SurfaceDetectionConfig

    try:
        return load_config(config, SurfaceDetectionConfig, namespace)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def detect(
    clouds: List[Path] = typer.Argument(..., help="Point-cloud files, all in the configured frame"),
    config: Path = typer.Option(DEFAULT_CONFIG, help="Parameter file path"),
    namespace: str = typer.Option(DEFAULT_NAMESPACE, help="Parameter namespace"),
    output_dir: Path = typer.Option(Path("output"), "--output-dir", "-o", help="Where results are written"),
    log_level: str = typer.Option("INFO", help="Logging level"),
    log_file: Optional[Path] = typer.Option(None, help="Also write the log to this file"),
) -> None:
    """Accumulate the given clouds and detect surfaces."""
    setup_logging(log_level, log_file)
    from surfdet.detection.surface_detection import SurfaceDetection
    from surfdet.utils.io import (
        read_point_cloud,
        write_colored_point_cloud,
        write_markers_json,
        write_mesh,
        write_point_cloud,
    )

    detector = SurfaceDetection(_load_detection_config(config, namespace))
    detector.init()
    for path in clouds:
        try:
            cloud = read_point_cloud(path)
        except FileNotFoundError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        detector.add_cloud(cloud)

    if not detector.find_surfaces():
        console.print(f"[red]Surface detection failed:[/red] {detector.get_results().last_error}")
        raise typer.Exit(1)

    output_dir.mkdir(parents=True, exist_ok=True)
    for i, mesh in enumerate(detector.get_meshes()):
        write_mesh(output_dir / f"surface_{i:03d}.ply", mesh)
    write_point_cloud(output_dir / "full_cloud.ply", detector.get_full_cloud())
    write_colored_point_cloud(output_dir / "segmentation.ply", detector.get_region_colored_cloud())
    write_markers_json(output_dir / "markers.json", detector.get_surface_markers())

    results = detector.get_results()
    table = Table(title="Surface detection")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for field_name, value in results.model_dump().items():
        if field_name == "last_error":
            continue
        table.add_row(field_name, str(value))
    console.print(table)
    console.print(f"[green]Results written to {output_dir}[/green]")


@app.command()
def info(
    config: Path = typer.Option(DEFAULT_CONFIG, help="Parameter file path"),
    namespace: str = typer.Option(DEFAULT_NAMESPACE, help="Parameter namespace"),
) -> None:
    """Show the effective surface-detection parameters."""
    cfg = _load_detection_config(config, namespace)
    fields = type(cfg).model_fields

    table = Table(title=f"Parameters: {namespace or '/'}")
    table.add_column("Parameter", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_column("Description", style="dim")
    for name, value in cfg.model_dump().items():
        table.add_row(name, str(value), fields[name].description or "-")
    console.print(table)


@app.command()
def scan_poses(
    config: Path = typer.Option(DEFAULT_CONFIG, help="Parameter file path"),
    namespace: str = typer.Option(DEFAULT_SCAN_NAMESPACE, help="Scan parameter namespace"),
) -> None:
    """Show the tool poses of the scan sweep."""
    from surfdet.core.errors import ConfigurationError
    from surfdet.core.params import load_config
    from surfdet.scan.config import ScanConfig
    from surfdet.scan.robot_scan import create_scan_poses

    try:
        scan_cfg = load_config(config, ScanConfig, namespace)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Scan poses ({scan_cfg.world_frame})")
    table.add_column("#", style="dim")
    table.add_column("Position (x, y, z)", style="cyan")
    table.add_column("Orientation (x, y, z, w)", style="green")
    for i, pose in enumerate(create_scan_poses(scan_cfg)):
        table.add_row(
            str(i),
            ", ".join(f"{v:.3f}" for v in pose.position),
            ", ".join(f"{v:.3f}" for v in pose.orientation),
        )
    console.print(table)


if __name__ == "__main__":
    app()
