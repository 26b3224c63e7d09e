"""Domain models for the render pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from PIL import Image

from .logging import BatchSummary, StageTimings


@dataclass(frozen=True, slots=True)
class Target:
    """One unit of work: a path on disk or a URL."""

    path: str
    is_url: bool = False


@dataclass(slots=True)
class RenderResult:
    """Outcome of rendering a single target."""

    target: Target
    image: Image.Image | None = None
    mime_type: str | None = None
    strategy: str | None = None
    timings: StageTimings = field(default_factory=StageTimings)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class BatchRenderResult:
    """Aggregate results for one invocation."""

    results: list[RenderResult]
    summary: BatchSummary


__all__ = [
    "BatchRenderResult",
    "RenderResult",
    "Target",
]
