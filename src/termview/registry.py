"""Ordered table mapping classified content to a decoder strategy.

Entries are evaluated top to bottom and the first matching predicate wins, so
the order of ``REGISTRY`` encodes precedence. PDF, for example, is claimed by
the vips entry before the MuPDF entry is consulted, and ``.fb2`` text is
claimed by MuPDF before the generic ``text/plain`` markdown entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .detection import ClassifiedContent
from .errors import UnsupportedTypeError


class Strategy(str, Enum):
    SVG = "svg"
    BUILTIN = "builtin"
    OFFICE = "office"
    VIPS = "vips"
    MUPDF = "mupdf"
    MERMAID = "mermaid"
    MARKDOWN = "markdown"
    FONT = "font"
    VIDEO = "video"
    AUDIO = "audio"
    COMIC = "comic"
    WINPE = "winpe"


class InvocationMode(str, Enum):
    STREAM = "stream"
    PATH = "path"


Predicate = Callable[[str, str], bool]


@dataclass(frozen=True, slots=True)
class StrategyEntry:
    strategy: Strategy
    predicate: Predicate
    mode: InvocationMode = InvocationMode.STREAM
    requires_named_source: bool = False

    def matches(self, mime: str, ext: str) -> bool:
        return self.predicate(mime, ext)


_BUILTIN_TYPES = frozenset(
    {
        "image/bmp",
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/tiff",
        "image/x-icon",
    }
)

_PORTABLE_PREFIX = "image/x-portable-"
_PORTABLE_FLOATMAP = "image/x-portable-floatmap"

_OFFICE_PREFIXES = (
    "application/vnd.openxmlformats-officedocument.",
    "application/vnd.ms-",
    "application/vnd.oasis.opendocument.",
)
_OFFICE_TYPES = frozenset({"text/rtf", "text/csv", "text/tab-separated-values"})

_COMIC_TYPES = frozenset(
    {
        ("application/x-7z-compressed", "cb7"),
        ("application/x-rar-compressed", "cbr"),
        ("application/x-tar", "cbt"),
        ("application/zip", "cbz"),
    }
)


def is_svg(mime: str, ext: str) -> bool:
    return mime == "image/svg"


def is_builtin(mime: str, ext: str) -> bool:
    if mime in _BUILTIN_TYPES:
        return True
    if mime == _PORTABLE_FLOATMAP:
        return False
    return mime.startswith(_PORTABLE_PREFIX)


def is_office(mime: str, ext: str) -> bool:
    if mime.startswith(_OFFICE_PREFIXES) or mime in _OFFICE_TYPES:
        return True
    return mime == "text/plain" and ext in {"csv", "tsv"}


def is_vips(mime: str, ext: str) -> bool:
    if mime == "application/pdf":
        return True
    if mime == "image/vnd.adobe.photoshop":
        return False
    return (
        mime.startswith("image/")
        and not mime.startswith(_PORTABLE_PREFIX)
        and "jxr" not in mime
    )


def is_mupdf(mime: str, ext: str) -> bool:
    # epub, mobi, fb2, psd, xps and the integer portable bitmaps
    return (
        mime == "application/epub+zip"
        or mime == "application/x-mobipocket-ebook"
        or mime in {"text/fb2+xml", "text/fb2"}
        or (mime == "text/xml" and ext == "fb2")
        or mime == "image/vnd.adobe.photoshop"
        or (mime == "application/zip" and ext == "xps")
        or (mime.startswith(_PORTABLE_PREFIX) and mime != _PORTABLE_FLOATMAP)
    )


def is_mermaid(mime: str, ext: str) -> bool:
    return mime == "text/plain" and ext == "mmd"


def is_text(mime: str, ext: str) -> bool:
    return mime == "text/plain"


def is_font(mime: str, ext: str) -> bool:
    return mime.startswith("font/")


def is_video(mime: str, ext: str) -> bool:
    return mime.startswith("video/")


def is_audio(mime: str, ext: str) -> bool:
    return mime.startswith("audio/")


def is_comic_archive(mime: str, ext: str) -> bool:
    return (mime, ext) in _COMIC_TYPES


def is_windows_pe(mime: str, ext: str) -> bool:
    return mime == "application/vnd.microsoft.portable-executable"


REGISTRY: tuple[StrategyEntry, ...] = (
    StrategyEntry(Strategy.SVG, is_svg),
    StrategyEntry(Strategy.BUILTIN, is_builtin),
    StrategyEntry(Strategy.OFFICE, is_office, InvocationMode.PATH),
    StrategyEntry(Strategy.VIPS, is_vips),
    StrategyEntry(Strategy.MUPDF, is_mupdf),
    StrategyEntry(Strategy.MERMAID, is_mermaid, InvocationMode.PATH),
    StrategyEntry(Strategy.MARKDOWN, is_text),
    StrategyEntry(Strategy.FONT, is_font),
    StrategyEntry(Strategy.VIDEO, is_video, InvocationMode.PATH),
    StrategyEntry(Strategy.AUDIO, is_audio, requires_named_source=True),
    StrategyEntry(Strategy.COMIC, is_comic_archive, requires_named_source=True),
    StrategyEntry(Strategy.WINPE, is_windows_pe, requires_named_source=True),
)


def select_strategy(
    content: ClassifiedContent,
    registry: tuple[StrategyEntry, ...] = REGISTRY,
) -> StrategyEntry:
    for entry in registry:
        if entry.matches(content.mime_type, content.extension):
            return entry
    raise UnsupportedTypeError(f"mime type {content.mime_type!r} not supported")


def entry_for(strategy: Strategy, registry: tuple[StrategyEntry, ...] = REGISTRY) -> StrategyEntry:
    for entry in registry:
        if entry.strategy is strategy:
            return entry
    raise KeyError(f"No registry entry for {strategy.value}")


__all__ = [
    "InvocationMode",
    "REGISTRY",
    "Strategy",
    "StrategyEntry",
    "entry_for",
    "select_strategy",
]
