from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from .. import __version__
from ..config import RenderConfig, config_path_from_env, load_config
from ..core import RenderService
from ..errors import CanceledError, TerminalGraphicsUnavailable
from ..logging import build_logger
from ..utils import parse_timecode

console = Console(stderr=True)

app = typer.Typer(
    help="Render images, documents, videos, fonts and more in the terminal",
    add_completion=False,
)


def _version(value: bool) -> None:
    if value:
        typer.echo(f"termview {__version__}")
        raise typer.Exit()


def _timecode(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return parse_timecode(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_config(path: Path | None, overrides: dict[str, Any]) -> RenderConfig:
    try:
        return load_config(path or config_path_from_env(), overrides)
    except (OSError, TypeError, ValueError) as exc:
        console.print(f"[red]Invalid configuration[/red]: {exc}")
        raise typer.Exit(2) from exc


@app.command()
def render(
    paths: list[str] = typer.Argument(..., help="Files, directories or URLs to render"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose timing output"),
    width: int | None = typer.Option(None, "-W", "--width", min=0, help="Scale width"),
    height: int | None = typer.Option(None, "-H", "--height", min=0, help="Scale height"),
    min_width: int | None = typer.Option(None, "-w", "--min-width", min=0, help="Minimum width [default: 64]"),
    min_height: int | None = typer.Option(None, "-h", "--min-height", min=0, help="Minimum height [default: 64]"),
    dpi: int | None = typer.Option(None, "--dpi", min=0, help="Document resolution [default: 300]"),
    page: int | None = typer.Option(None, "-p", "--page", min=0, help="Page, frame or icon to render"),
    fg: str | None = typer.Option(None, "--fg", help="Foreground color [default: dimgray]"),
    bg: str | None = typer.Option(None, "--bg", help="Background color [default: transparent]"),
    border: int | None = typer.Option(None, "--border", min=0, help="QR code border [default: 30]"),
    font_size: int | None = typer.Option(None, "--font-size", min=1, help="Font preview size [default: 48]"),
    font_style: str | None = typer.Option(None, "--font-style", help="Font preview style"),
    font_variant: str | None = typer.Option(
        None, "--font-variant", help="Font preview variant: normal, smallcaps, uppercase, lowercase"
    ),
    font_fg: str | None = typer.Option(None, "--font-fg", help="Font preview foreground [default: black]"),
    font_bg: str | None = typer.Option(None, "--font-bg", help="Font preview background [default: white]"),
    font_dpi: int | None = typer.Option(None, "--font-dpi", min=1, help="Font preview dpi [default: 100]"),
    font_margin: int | None = typer.Option(None, "--font-margin", min=0, help="Font preview margin [default: 5]"),
    timecode: str | None = typer.Option(
        None, "-t", "--timecode", help="Video snapshot position (SS, MM:SS, HH:MM:SS or 1m30s)"
    ),
    vips_concurrency: int | None = typer.Option(
        None, "--vips-concurrency", min=0, help="libvips worker threads [default: CPU count]"
    ),
    mermaid_icons: list[str] | None = typer.Option(
        None, "--mermaid-icons", help="Extra mermaid icon packs (repeatable)"
    ),
    mermaid_bg: str | None = typer.Option(None, "--mermaid-bg", help="Mermaid background [default: white]"),
    config: Path | None = typer.Option(None, "--config", help="Path to termview.toml"),
    version: bool = typer.Option(
        False, "--version", callback=_version, is_eager=True, help="Show version and exit"
    ),
) -> None:
    overrides: dict[str, Any] = {
        "verbose": verbose or None,
        "width": width,
        "height": height,
        "min_width": min_width,
        "min_height": min_height,
        "dpi": dpi,
        "page": page,
        "foreground": fg,
        "background": bg,
        "border": border,
        "font_size": font_size,
        "font_style": font_style,
        "font_variant": font_variant,
        "font_foreground": font_fg,
        "font_background": font_bg,
        "font_dpi": font_dpi,
        "font_margin": font_margin,
        "timecode": _timecode(timecode),
        "vips_concurrency": vips_concurrency,
        "mermaid_icons": tuple(mermaid_icons) if mermaid_icons else None,
        "mermaid_background": mermaid_bg,
    }
    cfg = _load_config(config, overrides)
    service = RenderService(cfg, logger=build_logger(cfg.verbose))
    try:
        service.run(paths, sys.stdout)
    except TerminalGraphicsUnavailable as exc:
        console.print(f"[red]error[/red]: {exc}")
        raise typer.Exit(1) from exc
    except (KeyboardInterrupt, CanceledError) as exc:
        service.cancel()
        console.print("[yellow]canceled[/yellow]")
        raise typer.Exit(130) from exc


def main() -> None:
    app()


if __name__ == "__main__":
    main()
