"""Markdown rendering.

Text is converted to HTML with markdown-it-py, laid out into an in-memory PDF
by PyMuPDF's ``Story`` and handed back to the vips strategy. Remote images are
downloaded, normalized through vips and embedded as PNG; anything else in an
``img`` tag is dropped.
"""

from __future__ import annotations

import io
from typing import BinaryIO
from urllib.parse import urlsplit

import fitz
import httpx
from markdown_it import MarkdownIt
from markdown_it.token import Token
from PIL import Image

from .base import BaseAdapter, encode_png
from ..errors import DecodeError
from ..registry import Strategy


FETCH_TIMEOUT = httpx.Timeout(30.0, connect=10.0)
PAGE_SIZE = "a4"
PAGE_MARGIN = 36

USER_CSS = """
body { font-family: sans-serif; font-size: 11pt; }
pre, code { font-family: monospace; }
img { max-width: 100%; }
"""


def is_remote(src: str) -> bool:
    return urlsplit(src).scheme in {"http", "https"}


def build_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable("table").enable("strikethrough")


class MarkdownAdapter(BaseAdapter):
    strategy = Strategy.MARKDOWN

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        text = self.read_all(source, name).decode("utf-8", errors="replace")
        archive = fitz.Archive()
        html = self.to_html(text, archive)
        pdf = self.layout(html, archive, name)
        self.log("markdown pdf: %d bytes", len(pdf))
        return self._decoders.decode(
            Strategy.VIPS, name, "application/pdf", io.BytesIO(pdf)
        )

    def to_html(self, text: str, archive: fitz.Archive) -> str:
        parser = build_parser()
        tokens = parser.parse(text)
        with httpx.Client(timeout=FETCH_TIMEOUT, follow_redirects=True) as client:
            embedded = 0
            for token in tokens:
                if token.type != "inline" or not token.children:
                    continue
                kept: list[Token] = []
                for child in token.children:
                    if child.type == "image":
                        entry = self._embed(client, str(child.attrGet("src") or ""), archive, embedded)
                        if entry is None:
                            continue
                        embedded += 1
                        child.attrSet("src", entry)
                    kept.append(child)
                token.children = kept
        return parser.renderer.render(tokens, parser.options, {})

    def _embed(
        self, client: httpx.Client, src: str, archive: fitz.Archive, index: int
    ) -> str | None:
        if not is_remote(src):
            self.log("dropping image: %s", src)
            return None
        self._context.ensure_not_cancelled("markdown image fetch")
        try:
            response = client.get(src)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self.log("unable to fetch %s: %s", src, exc)
            return None
        try:
            img = self._decoders.decode(Strategy.VIPS, src, "", io.BytesIO(response.content))
        except DecodeError as exc:
            self.log("unable to decode %s: %s", src, exc)
            return None
        entry = f"image{index}.png"
        archive.add(encode_png(img), entry)
        self.log("embedded %s as %s", src, entry)
        return entry

    def layout(self, html: str, archive: fitz.Archive, name: str) -> bytes:
        buffer = io.BytesIO()
        mediabox = fitz.paper_rect(PAGE_SIZE)
        where = mediabox + (PAGE_MARGIN, PAGE_MARGIN, -PAGE_MARGIN, -PAGE_MARGIN)
        try:
            story = fitz.Story(html=html, user_css=USER_CSS, archive=archive)
            writer = fitz.DocumentWriter(buffer)
            more = True
            while more:
                device = writer.begin_page(mediabox)
                more, _ = story.place(where)
                story.draw(device)
                writer.end_page()
            writer.close()
        except (RuntimeError, ValueError) as exc:
            raise DecodeError(f"unable to lay out {name}: {exc}") from exc
        return buffer.getvalue()


__all__ = ["MarkdownAdapter", "build_parser", "is_remote"]
