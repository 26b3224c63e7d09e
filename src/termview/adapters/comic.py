from __future__ import annotations

import tarfile
import zipfile
from pathlib import PurePosixPath
from typing import BinaryIO, Callable

import py7zr
from py7zr.exceptions import ArchiveError
import rarfile
from PIL import Image

from .base import BaseAdapter, open_image, require_named_source, select_page
from ..detection import file_ext
from ..errors import DecodeError
from ..process import TempWorkspace
from ..registry import Strategy


IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "gif", "bmp", "png", "webp", "tiff", "tif"})


def page_names(names: list[str]) -> list[str]:
    """Archive members that look like pages, in reading order."""

    pages = [
        name
        for name in names
        if not name.endswith("/") and file_ext(PurePosixPath(name).name) in IMAGE_EXTENSIONS
    ]
    return sorted(pages)


class ComicAdapter(BaseAdapter):
    strategy = Strategy.COMIC

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        named = require_named_source(source)
        path = named.name
        readers: dict[str, Callable[[str], tuple[str, bytes]]] = {
            "cbz": self._read_zip,
            "cbt": self._read_tar,
            "cb7": self._read_7z,
            "cbr": self._read_rar,
        }
        reader = readers.get(file_ext(path))
        if reader is None:
            raise DecodeError(f"unknown comic archive: {name}")
        member, data = reader(path)
        self.log("comic page: %s", member)
        return self.log_dimensions(open_image(data, member))

    def _choose(self, names: list[str]) -> str:
        pages = page_names(names)
        if not pages:
            raise DecodeError("no images in archive")
        index = select_page(self.config.page, len(pages))
        self.log("comic pages: %d selected: %d", len(pages), index + 1)
        return pages[index]

    def _read_zip(self, path: str) -> tuple[str, bytes]:
        try:
            with zipfile.ZipFile(path) as archive:
                member = self._choose(archive.namelist())
                return member, archive.read(member)
        except (zipfile.BadZipFile, OSError) as exc:
            raise DecodeError(f"unable to read zip archive: {exc}") from exc

    def _read_tar(self, path: str) -> tuple[str, bytes]:
        try:
            with tarfile.open(path) as archive:
                files = {info.name: info for info in archive.getmembers() if info.isfile()}
                member = self._choose(list(files))
                handle = archive.extractfile(files[member])
                if handle is None:
                    raise DecodeError(f"unable to extract {member}")
                with handle:
                    return member, handle.read()
        except (tarfile.TarError, OSError) as exc:
            raise DecodeError(f"unable to read tar archive: {exc}") from exc

    def _read_7z(self, path: str) -> tuple[str, bytes]:
        try:
            with py7zr.SevenZipFile(path, mode="r") as archive:
                member = self._choose(archive.getnames())
                with TempWorkspace(logger=self._context.logger) as workspace:
                    archive.extract(path=workspace, targets=[member])
                    return member, (workspace / member).read_bytes()
        except (ArchiveError, OSError) as exc:
            raise DecodeError(f"unable to read 7z archive: {exc}") from exc

    def _read_rar(self, path: str) -> tuple[str, bytes]:
        try:
            with rarfile.RarFile(path) as archive:
                member = self._choose(archive.namelist())
                return member, archive.read(member)
        except (rarfile.Error, OSError) as exc:
            raise DecodeError(f"unable to read rar archive: {exc}") from exc


__all__ = ["ComicAdapter", "IMAGE_EXTENSIONS", "page_names"]
