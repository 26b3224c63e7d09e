from __future__ import annotations

import time
from threading import Event
from typing import BinaryIO, Iterable, TextIO

from PIL import Image

from .adapters import DecodeContext, DecoderSet
from .adapters.base import require_named_source
from .adapters.url import QR_MIME, render_qr
from .compose import add_background
from .config import RenderConfig
from .detection import classify
from .encoders import Encoder, TerminalEncoder
from .errors import CanceledError, ResolveError
from .logging import BatchSummary, RenderLogger, StageTimings, build_logger, elapsed_ms
from .models import BatchRenderResult, RenderResult, Target
from .process import DEFAULT_TOOLS, ToolLocator
from .registry import InvocationMode, Strategy, select_strategy
from .targets import resolve_all
from .utils import quote


class RenderService:
    """Classifies, decodes, composites and encodes targets one at a time."""

    def __init__(
        self,
        config: RenderConfig,
        *,
        encoder: Encoder | None = None,
        logger: RenderLogger | None = None,
        tools: ToolLocator | None = None,
        cancellation: Event | None = None,
        decoders: DecoderSet | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or build_logger(config.verbose)
        self._encoder = encoder or TerminalEncoder()
        self._cancellation = cancellation or Event()
        self._context = DecodeContext(
            config=config,
            logger=self._logger,
            tools=tools or DEFAULT_TOOLS,
            cancellation=self._cancellation,
        )
        self._decoders = decoders or DecoderSet(self._context)

    @property
    def cancellation(self) -> Event:
        return self._cancellation

    def cancel(self) -> None:
        self._cancellation.set()

    def decode_stream(
        self, name: str, source: BinaryIO, timings: StageTimings | None = None
    ) -> tuple[Image.Image, str, Strategy]:
        """Decode an open handle; path-mode strategies get the handle closed first."""

        timings = timings if timings is not None else StageTimings()
        start = time.perf_counter()
        content = classify(source, name)
        entry = select_strategy(content)
        timings.classify_ms = elapsed_ms(start)
        self._logger(
            "mime: %s ext: %s strategy: %s",
            content.mime_type,
            content.extension,
            entry.strategy.value,
        )
        self._context.ensure_not_cancelled("classification")

        start = time.perf_counter()
        if entry.mode is InvocationMode.PATH:
            source.close()
            image = self._decoders.decode(entry.strategy, name, content.mime_type, None)
        else:
            if entry.requires_named_source:
                require_named_source(source)
            source.seek(0)
            image = self._decoders.decode(entry.strategy, name, content.mime_type, source)
        timings.decode_ms = elapsed_ms(start)
        return image, content.mime_type, entry.strategy

    def render(self, target: Target) -> RenderResult:
        """Produce the composited image for *target*; errors propagate."""

        timings = StageTimings()
        strategy: Strategy | None = None
        if target.is_url:
            start = time.perf_counter()
            image, mime = render_qr(target.path, self._config), QR_MIME
            timings.decode_ms = elapsed_ms(start)
        else:
            try:
                handle = open(target.path, "rb")
            except OSError as exc:
                raise ResolveError(str(exc.strerror or exc)) from exc
            with handle:
                image, mime, strategy = self.decode_stream(target.path, handle, timings)

        start = time.perf_counter()
        image = add_background(image, mime, self._config, strategy)
        timings.compose_ms = elapsed_ms(start)
        self._logger("compose: %.1fms", timings.compose_ms)
        return RenderResult(
            target=target,
            image=image,
            mime_type=mime,
            strategy=strategy.value if strategy else None,
            timings=timings,
        )

    def _render_one(self, target: Target, out: TextIO) -> RenderResult:
        out.write(f"{target.path}:\n")
        out.flush()
        result = self.render(target)
        start = time.perf_counter()
        if result.image is not None:
            self._encoder.encode(result.image, out)
        result.timings.encode_ms = elapsed_ms(start)
        self._logger("encode out: %.1fms", result.timings.encode_ms)
        self._logger("total: %.1fms", result.timings.total_ms)
        return result

    def run(self, arguments: Iterable[str], out: TextIO) -> BatchRenderResult:
        """Render every argument to *out*, reporting failures inline and moving on."""

        self._encoder.ensure_available()
        summary = BatchSummary()
        targets: list[Target] = []
        for argument, resolved in resolve_all(arguments):
            if isinstance(resolved, ResolveError):
                summary.open_failures += 1
                out.write(f"error: unable to open {quote(argument)}: {resolved}\n\n")
                continue
            targets.extend(resolved)

        results: list[RenderResult] = []
        for target in targets:
            if self._cancellation.is_set():
                break
            summary.total += 1
            try:
                result = self._render_one(target, out)
            except CanceledError:
                raise
            except Exception as exc:
                out.write(f"error: unable to render {quote(target.path)}: {exc}\n\n")
                result = RenderResult(target=target, error=exc)
            results.append(result)
        summary.successes = sum(1 for result in results if result.ok)
        summary.failures = len(results) - summary.successes
        out.flush()
        self._logger(summary.as_line())
        return BatchRenderResult(results=results, summary=summary)


__all__ = ["RenderService"]
