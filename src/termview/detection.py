from __future__ import annotations

import os
from dataclasses import dataclass
from typing import BinaryIO

import magic

from .errors import ClassificationError


SNIFF_LIMIT = 3072

# libmagic spells a few types differently from the names the registry matches on
MIME_ALIASES: dict[str, str] = {
    "application/x-dosexec": "application/vnd.microsoft.portable-executable",
    "application/x-msdownload": "application/vnd.microsoft.portable-executable",
    "image/x-ms-bmp": "image/bmp",
    "image/x-bmp": "image/bmp",
    "image/vnd.microsoft.icon": "image/x-icon",
    "image/x-win-bitmap": "image/x-icon",
    "application/vnd.rar": "application/x-rar-compressed",
    "application/x-rar": "application/x-rar-compressed",
    "application/csv": "text/csv",
    "text/markdown": "text/plain",
    "text/x-markdown": "text/plain",
    "application/vnd.ms-opentype": "font/otf",
    "application/x-font-ttf": "font/ttf",
    "application/font-sfnt": "font/sfnt",
    "application/font-woff": "font/woff",
    "application/x-font-woff": "font/woff",
}


@dataclass(frozen=True, slots=True)
class ClassifiedContent:
    mime_type: str
    extension: str


def file_ext(name: str) -> str:
    """Return the lowercased extension of *name* without its leading dot."""

    return os.path.splitext(name)[1].lstrip(".").lower()


def normalize_mime(value: str) -> str:
    mime = value.split(";", 1)[0].strip().lower()
    mime = mime.removesuffix("+xml")
    return MIME_ALIASES.get(mime, mime)


def sniff_mime(data: bytes) -> str:
    try:
        detected = magic.from_buffer(data, mime=True)
    except magic.MagicException as exc:
        raise ClassificationError(f"mime detection failed: {exc}") from exc
    return normalize_mime(detected or "application/octet-stream")


def classify(source: BinaryIO, name: str) -> ClassifiedContent:
    """Sniff the media type from a bounded prefix of *source*.

    The handle is rewound afterwards so decoders see the whole stream.
    """

    try:
        prefix = source.read(SNIFF_LIMIT)
        source.seek(0)
    except (OSError, ValueError) as exc:
        raise ClassificationError(f"mime detection failed: {exc}") from exc
    if prefix is None:
        raise ClassificationError("mime detection failed: stream returned no data")
    return ClassifiedContent(mime_type=sniff_mime(prefix), extension=file_ext(name))


__all__ = [
    "ClassifiedContent",
    "MIME_ALIASES",
    "SNIFF_LIMIT",
    "classify",
    "file_ext",
    "normalize_mime",
    "sniff_mime",
]
