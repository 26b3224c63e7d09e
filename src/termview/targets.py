from __future__ import annotations

import os
from typing import Iterable, Iterator
from urllib.parse import urlparse

from .detection import file_ext
from .errors import ResolveError
from .models import Target
from .utils import quote


# extensions picked up when a directory is expanded
EXTENSIONS = frozenset(
    {
        "3g2", "3gp", "aac", "asf", "avif", "avi", "bmp", "bpg", "csv", "doc",
        "docx", "dvb", "dwg", "eot", "flac", "flv", "gif", "heic", "heif", "ico",
        "jp2", "jpeg", "jpf", "jpg", "jxl", "jxs", "m4a", "m4v", "markdown", "md",
        "mj2", "mkv", "mov", "mp3", "mp4", "mpeg3", "mpeg", "mpg", "odc", "odf",
        "odg", "odp", "ods", "odt", "oga", "ogg", "ogv", "otf", "otg", "otp",
        "ots", "ott", "pdf", "png", "ppt", "pptx", "pub", "rtf", "svg", "tiff",
        "tsv", "ttc", "ttf", "txt", "webm", "webp", "woff2", "woff", "xls", "xlsx",
        "xpm",
        # comic archives
        "cb7", "cba", "cbr", "cbt", "cbz",
        # ebooks and xps
        "xps", "epub", "mobi", "fb2",
        # mermaid
        "mmd",
        # windows pe
        "exe",
    }
)

WIFI_PREFIX = "WIFI:"


def _expand_directory(path: str) -> list[Target]:
    try:
        entries = list(os.scandir(path))
    except OSError as exc:
        raise ResolveError(f"unable to read directory {quote(path)}: {exc}") from exc
    targets = [
        Target(os.path.join(path, entry.name))
        for entry in entries
        if not entry.is_dir() and file_ext(entry.name) in EXTENSIONS
    ]
    return sorted(targets, key=lambda target: target.path)


def _is_url(value: str) -> bool:
    if "://" not in value:
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme)


def resolve(argument: str) -> list[Target]:
    """Expand one command-line argument into render targets."""

    if os.path.isdir(argument):
        return _expand_directory(argument)
    if os.path.exists(argument):
        return [Target(argument)]
    if _is_url(argument) or argument.startswith(WIFI_PREFIX):
        return [Target(argument, is_url=True)]
    raise ResolveError(f"unable to open {quote(argument)}")


def resolve_all(arguments: Iterable[str]) -> Iterator[tuple[str, list[Target] | ResolveError]]:
    """Yield each argument with its targets, or the error that argument hit."""

    for argument in arguments:
        try:
            yield argument, resolve(argument)
        except ResolveError as exc:
            yield argument, exc


__all__ = [
    "EXTENSIONS",
    "WIFI_PREFIX",
    "resolve",
    "resolve_all",
]
