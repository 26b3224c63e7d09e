from __future__ import annotations

import json
import os
import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Iterable, Mapping

from PIL import ImageColor


CONFIG_FILE = Path("termview.toml")
ENV_PREFIX = "TERMVIEW_"

TRANSPARENT = "transparent"
FONT_VARIANTS = frozenset({"normal", "smallcaps", "uppercase", "lowercase"})

RGBA = tuple[int, int, int, int]


def parse_color(value: str) -> RGBA | None:
    """Convert a color name or hex string to RGBA, ``None`` for transparent."""

    normalized = value.strip().lower()
    if normalized in {"", TRANSPARENT, "none"}:
        return None
    try:
        rgba = ImageColor.getcolor(normalized, "RGBA")
    except ValueError as exc:
        raise ValueError(f"invalid color {value!r}") from exc
    if rgba[3] == 0:
        return None
    return rgba  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Immutable snapshot of every rendering tunable.

    Colors are kept as the strings the user supplied and converted once, at
    construction, into RGBA tuples. Instances are shared by reference across
    all target renders.
    """

    width: int = 0
    height: int = 0
    min_width: int = 64
    min_height: int = 64
    dpi: int = 300
    page: int = 0
    foreground: str = "dimgray"
    background: str = TRANSPARENT
    border: int = 30
    font_size: int = 48
    font_style: str = ""
    font_variant: str = "normal"
    font_foreground: str = "black"
    font_background: str = "white"
    font_dpi: int = 100
    font_margin: int = 5
    timecode: float = 0.0
    vips_concurrency: int = field(default_factory=lambda: os.cpu_count() or 1)
    mermaid_icons: tuple[str, ...] = ()
    mermaid_background: str = "white"
    verbose: bool = False

    foreground_rgba: RGBA | None = field(init=False, repr=False, compare=False)
    background_rgba: RGBA | None = field(init=False, repr=False, compare=False)
    font_foreground_rgba: RGBA | None = field(init=False, repr=False, compare=False)
    font_background_rgba: RGBA | None = field(init=False, repr=False, compare=False)
    mermaid_background_rgba: RGBA | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("width", "height", "min_width", "min_height", "dpi", "page", "border"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.timecode < 0:
            raise ValueError("timecode must not be negative")
        if self.font_variant not in FONT_VARIANTS:
            raise ValueError(
                f"font_variant must be one of {', '.join(sorted(FONT_VARIANTS))}"
            )
        object.__setattr__(self, "mermaid_icons", tuple(self.mermaid_icons))
        object.__setattr__(self, "foreground_rgba", parse_color(self.foreground))
        object.__setattr__(self, "background_rgba", parse_color(self.background))
        object.__setattr__(self, "font_foreground_rgba", parse_color(self.font_foreground))
        object.__setattr__(self, "font_background_rgba", parse_color(self.font_background))
        object.__setattr__(self, "mermaid_background_rgba", parse_color(self.mermaid_background))

    @property
    def scale_bounds(self) -> tuple[int, int] | None:
        """Target box for best-fit scaling, or ``None`` when no size was given."""

        if not self.width and not self.height:
            return None
        return max(self.width, self.min_width), max(self.height, self.min_height)


def _field_names() -> set[str]:
    return {f.name for f in fields(RenderConfig) if f.init}


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _tuple_of_strings(value: object | None) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise TypeError(f"Unsupported mermaid_icons configuration: {value!r}")


def _build_render(data: Mapping[str, object] | None) -> dict[str, Any]:
    if not data:
        return {}
    known = _field_names()
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown render settings: {', '.join(unknown)}")
    values: dict[str, Any] = dict(data)
    if "mermaid_icons" in values:
        values["mermaid_icons"] = _tuple_of_strings(values["mermaid_icons"])
    return values


def config_path_from_env(default: Path = CONFIG_FILE) -> Path:
    value = os.getenv(f"{ENV_PREFIX}CONFIG_PATH")
    return Path(value) if value else default


def load_config(
    path: Path | None = None,
    overrides: Mapping[str, object] | None = None,
) -> RenderConfig:
    """Build a RenderConfig from the TOML file, then apply non-``None`` overrides."""

    path = path or config_path_from_env()
    raw = _read_toml(path)
    render_data = raw.get("render") if isinstance(raw, Mapping) else None
    values = _build_render(render_data if isinstance(render_data, Mapping) else None)
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value
    return RenderConfig(**values)


def dump_config(config: RenderConfig) -> str:
    payload = {name: value for name, value in asdict(config).items() if name in _field_names()}
    payload["mermaid_icons"] = list(config.mermaid_icons)
    return json.dumps(payload, sort_keys=True)


__all__ = [
    "CONFIG_FILE",
    "ENV_PREFIX",
    "FONT_VARIANTS",
    "RGBA",
    "RenderConfig",
    "config_path_from_env",
    "dump_config",
    "load_config",
    "parse_color",
]
