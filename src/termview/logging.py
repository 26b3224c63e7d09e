from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Protocol

from rich.console import Console


@dataclass(slots=True)
class StageTimings:
    classify_ms: float = 0.0
    decode_ms: float = 0.0
    compose_ms: float = 0.0
    encode_ms: float = 0.0

    @property
    def total_ms(self) -> float:
        return self.classify_ms + self.decode_ms + self.compose_ms + self.encode_ms


class RenderLogger(Protocol):
    def __call__(self, message: str, *args: object) -> None:  # pragma: no cover - interface
        ...


class NullLogger:
    """Discards every message; the default when verbose output is off."""

    def __call__(self, message: str, *args: object) -> None:
        return None


class VerboseLogger:
    """Writes diagnostic lines to the error stream."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True, highlight=False, soft_wrap=True)

    def __call__(self, message: str, *args: object) -> None:
        line = message % args if args else message
        self._console.print(line, markup=False)


class _LoggerHandler(logging.Handler):
    """Forwards stdlib logging records (pyvips uses them) to a RenderLogger."""

    def __init__(self, logger: RenderLogger, prefix: str) -> None:
        super().__init__()
        self._logger = logger
        self._prefix = prefix

    def emit(self, record: logging.LogRecord) -> None:
        level = record.levelname.lower()[:3]
        self._logger("%s %s: %s", self._prefix, level, record.getMessage().strip())


def route_library_logging(name: str, logger: RenderLogger, *, verbose: bool) -> None:
    target = logging.getLogger(name)
    target.setLevel(logging.DEBUG if verbose else logging.ERROR)
    target.propagate = False
    for handler in list(target.handlers):
        if isinstance(handler, _LoggerHandler):
            target.removeHandler(handler)
    target.addHandler(_LoggerHandler(logger, name))


def build_logger(verbose: bool, console: Console | None = None) -> RenderLogger:
    if verbose:
        return VerboseLogger(console)
    return NullLogger()


def elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


@dataclass(slots=True)
class BatchSummary:
    total: int = 0
    successes: int = 0
    failures: int = 0
    open_failures: int = 0

    def as_line(self) -> str:
        return (
            f"rendered {self.successes}/{self.total} targets, "
            f"{self.failures} failed, {self.open_failures} could not be opened"
        )


__all__ = [
    "BatchSummary",
    "NullLogger",
    "RenderLogger",
    "StageTimings",
    "VerboseLogger",
    "build_logger",
    "elapsed_ms",
    "route_library_logging",
]
