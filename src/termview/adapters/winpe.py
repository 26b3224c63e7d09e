"""Icon extraction from Windows executables.

Icons live in the resource tree as ``RT_GROUP_ICON`` directories that point
at individual ``RT_ICON`` bitmaps. Each group is reassembled into a standalone
``.ico`` file which Pillow can open.
"""

from __future__ import annotations

import struct
from typing import Any, BinaryIO

import pefile
from PIL import Image

from .base import BaseAdapter, open_image, require_named_source, select_page
from ..errors import DecodeError
from ..registry import Strategy


RT_ICON = pefile.RESOURCE_TYPE["RT_ICON"]
RT_GROUP_ICON = pefile.RESOURCE_TYPE["RT_GROUP_ICON"]

_DIR_HEADER = struct.Struct("<HHH")
_GROUP_ENTRY = struct.Struct("<BBBBHHIH")
_ICO_ENTRY = struct.Struct("<BBBBHHII")


def _first_language(entry: Any) -> Any | None:
    directory = getattr(entry, "directory", None)
    if directory is None or not directory.entries:
        return None
    return directory.entries[0]


def _resource_data(pe: pefile.PE, entry: Any) -> bytes | None:
    leaf = _first_language(entry)
    if leaf is None or not hasattr(leaf, "data"):
        return None
    return pe.get_data(leaf.data.struct.OffsetToData, leaf.data.struct.Size)


def build_ico(group: bytes, icons: dict[int, bytes]) -> bytes:
    """Assemble an ICO file from a GRPICONDIR blob and the RT_ICON payloads."""

    if len(group) < _DIR_HEADER.size:
        raise ValueError("truncated icon group")
    reserved, kind, count = _DIR_HEADER.unpack_from(group)
    entries: list[tuple[tuple[int, ...], bytes]] = []
    for index in range(count):
        offset = _DIR_HEADER.size + index * _GROUP_ENTRY.size
        if offset + _GROUP_ENTRY.size > len(group):
            raise ValueError("truncated icon group")
        *fields, icon_id = _GROUP_ENTRY.unpack_from(group, offset)
        data = icons.get(icon_id)
        if data is None:
            continue
        entries.append((tuple(fields), data))
    if not entries:
        raise ValueError("icon group references no icons")
    header = _DIR_HEADER.pack(reserved, kind or 1, len(entries))
    directory = b""
    payload = b""
    offset = _DIR_HEADER.size + _ICO_ENTRY.size * len(entries)
    for fields, data in entries:
        width, height, colors, res, planes, bits, _size = fields
        directory += _ICO_ENTRY.pack(width, height, colors, res, planes, bits, len(data), offset)
        payload += data
        offset += len(data)
    return header + directory + payload


class WinPEAdapter(BaseAdapter):
    strategy = Strategy.WINPE

    def _icons(self, pe: pefile.PE) -> list[bytes]:
        root = getattr(pe, "DIRECTORY_ENTRY_RESOURCE", None)
        if root is None:
            return []
        icons: dict[int, bytes] = {}
        groups: list[bytes] = []
        for kind in root.entries:
            if kind.id not in (RT_ICON, RT_GROUP_ICON) or not hasattr(kind, "directory"):
                continue
            for entry in kind.directory.entries:
                data = _resource_data(pe, entry)
                if data is None:
                    continue
                if kind.id == RT_ICON and entry.id is not None:
                    icons[entry.id] = data
                elif kind.id == RT_GROUP_ICON:
                    groups.append(data)
        result = []
        for index, group in enumerate(groups):
            try:
                result.append(build_ico(group, icons))
            except ValueError as exc:
                self.log("skipping icon group %d: %s", index, exc)
        return result

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        named = require_named_source(source)
        try:
            pe = pefile.PE(named.name, fast_load=True)
            try:
                pe.parse_data_directories(
                    directories=[pefile.DIRECTORY_ENTRY["IMAGE_DIRECTORY_ENTRY_RESOURCE"]]
                )
                icons = self._icons(pe)
            finally:
                pe.close()
        except pefile.PEFormatError as exc:
            raise DecodeError(f"can't parse executable {name}: {exc}") from exc
        if not icons:
            raise DecodeError("no icons found")
        index = select_page(self.config.page, len(icons))
        self.log("icons: %d selected: %d", len(icons), index + 1)
        img = open_image(icons[index], name)
        return self.log_dimensions(img)


__all__ = ["WinPEAdapter", "build_ico"]
