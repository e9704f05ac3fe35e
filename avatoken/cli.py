from __future__ import annotations

import logging
from typing import List, Optional

import typer
import yaml

from . import config as cfgmod
from . import utils
from .batch import process_inputs, write_report
from .colors import average_tone, to_hex
from .config import load_config, resolve_config
from .sources import DecodeError, UnsupportedImageError, load_image

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Circular token avatar maker")

DEFAULT_CONFIG = "configs/default.yaml"


def _read_config(path: str) -> dict:
    """Config from `path`; built-in defaults only when the default path is absent."""
    if not utils.path_exists(path):
        if path == DEFAULT_CONFIG:
            return cfgmod.default_config()
        raise typer.BadParameter(f"Config file not found: {path}", param_hint="--config")
    try:
        return load_config(path)
    except (ValueError, yaml.YAMLError) as e:
        raise typer.BadParameter(f"Error reading config {path}: {e}", param_hint="--config")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(levelname)s: %(message)s")


@app.command()
def init(config_path: str = DEFAULT_CONFIG):
    """Write a default config and create the output folder."""
    if utils.path_exists(config_path):
        typer.echo(f"Config already exists: {config_path}")
        raise typer.Exit(code=0)
    cfg = cfgmod.default_config()
    cfgmod.save_config(cfg, config_path)
    utils.ensure_dir(cfg["output"]["dir"])
    typer.echo(f"Created {config_path}")
    typer.echo(f"Output folder ready: {cfg['output']['dir']}")


@app.command()
def process(
        inputs: Optional[List[str]] = typer.Argument(None, help="Image files and/or http(s) URLs"),
        config: str = typer.Option(DEFAULT_CONFIG, help="Config YAML (or the old config.json)"),
        scale: int = typer.Option(None, help="Output side length in px"),
        border_width: float = typer.Option(None, help="Ring stroke width in px"),
        color: str = typer.Option(None, help="Ring color #RRGGBB"),
        tint: bool = typer.Option(False, "--tint", help="Derive the ring color from the image"),
        output_dir: str = typer.Option(None, "--output-dir", "-o"),
        report: str = typer.Option(None, help="Write per-item results as JSON here"),
        progress: bool = typer.Option(False, "--progress/--no-progress"),
):
    """Turn images into circular tokens. One failing input does not stop the rest."""
    if not inputs:
        raise typer.BadParameter("Drag and drop image files onto this command, or pass paths/URLs.")

    cfg = _read_config(config)

    if scale is not None:        cfg["render"]["scale"] = scale
    if border_width is not None: cfg["render"]["border_width"] = border_width
    if color:                    cfg["render"]["color"] = color
    if tint:                     cfg["render"]["color"] = None
    if output_dir:               cfg["output"]["dir"] = output_dir

    try:
        cfg = resolve_config(cfg)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    results = process_inputs(inputs, cfg, progress=progress)
    for res in results:
        if res.ok:
            typer.echo(f"OK  {res.source} -> {res.output}")
        else:
            typer.echo(f"ERR {res.source}: {res.error}", err=True)

    if report:
        write_report(results, report)
        typer.echo(f"Report written to: {report}")

    failures = sum(1 for r in results if not r.ok)
    typer.echo(f"Finished: {len(results) - failures} processed, {failures} failed")
    if failures:
        raise typer.Exit(code=1)


@app.command()
def tone(
        image: str = typer.Argument(..., help="Image file"),
        brightness: int = typer.Option(100),
        contrast: float = typer.Option(10.0),
):
    """Print the border tint that would be derived from IMAGE."""
    try:
        im = load_image(image)
    except (FileNotFoundError, UnsupportedImageError, DecodeError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(to_hex(average_tone(im, brightness=brightness, contrast=contrast)))


@app.command()
def serve(
        config: str = typer.Option(DEFAULT_CONFIG),
        host: str = typer.Option(None),
        port: int = typer.Option(None),
):
    """Serve a small web form that turns an image URL into a token."""
    from .web import serve as serve_fn

    cfg = _read_config(config)
    if host:             cfg["server"]["host"] = host
    if port is not None: cfg["server"]["port"] = port
    try:
        cfg = resolve_config(cfg)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    serve_fn(cfg)


if __name__ == "__main__":
    app()
