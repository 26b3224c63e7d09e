from __future__ import annotations

import base64
import binascii
from typing import Any, BinaryIO

import mutagen
from mutagen.flac import Picture
from mutagen.id3 import ID3
from PIL import Image

from .base import BaseAdapter, open_image, require_named_source
from ..errors import DecodeError
from ..registry import Strategy


FRONT_COVER = 3


def _pick(pictures: list[tuple[int, bytes]]) -> bytes | None:
    if not pictures:
        return None
    for kind, data in pictures:
        if kind == FRONT_COVER:
            return data
    return pictures[0][1]


def embedded_pictures(audio: Any) -> list[tuple[int, bytes]]:
    """Collect ``(picture type, data)`` pairs from any tag flavour mutagen knows."""

    found: list[tuple[int, bytes]] = []
    tags = getattr(audio, "tags", None)
    if isinstance(tags, ID3):
        found.extend((int(frame.type), frame.data) for frame in tags.getall("APIC"))
    for picture in getattr(audio, "pictures", None) or []:
        found.append((picture.type, picture.data))
    if tags is not None and hasattr(tags, "get") and not isinstance(tags, ID3):
        for cover in tags.get("covr") or []:
            found.append((FRONT_COVER, bytes(cover)))
        for block in tags.get("metadata_block_picture") or []:
            try:
                picture = Picture(base64.b64decode(block))
            except (binascii.Error, ValueError, mutagen.MutagenError):
                continue
            found.append((picture.type, picture.data))
    return found


class AudioAdapter(BaseAdapter):
    strategy = Strategy.AUDIO

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        named = require_named_source(source)
        named.seek(0)
        try:
            audio = mutagen.File(named)
        except mutagen.MutagenError as exc:
            raise DecodeError(f"can't read tags from {name}: {exc}") from exc
        if audio is None:
            raise DecodeError(f"unrecognized audio container: {name}")
        pictures = embedded_pictures(audio)
        self.log("embedded pictures: %d", len(pictures))
        data = _pick(pictures)
        if data is None:
            raise DecodeError("no embedded picture")
        return self.log_dimensions(open_image(data, name))


__all__ = ["AudioAdapter", "embedded_pictures"]
