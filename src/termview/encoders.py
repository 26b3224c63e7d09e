"""Terminal graphics output through term-image."""

from __future__ import annotations

from typing import Protocol, Sequence, TextIO

from PIL import Image
from term_image.exceptions import TermImageError
from term_image.image import GraphicsImage, ITerm2Image, KittyImage

from .errors import EncodeError, TerminalGraphicsUnavailable


DEFAULT_PROTOCOLS: tuple[type[GraphicsImage], ...] = (KittyImage, ITerm2Image)


class Encoder(Protocol):
    def ensure_available(self) -> None:  # pragma: no cover - interface
        ...

    def encode(self, image: Image.Image, out: TextIO) -> None:  # pragma: no cover - interface
        ...


class TerminalEncoder:
    """Serializes images with the first graphics protocol the terminal supports."""

    def __init__(self, protocols: Sequence[type[GraphicsImage]] = DEFAULT_PROTOCOLS) -> None:
        self._protocols = tuple(protocols)
        self._selected: type[GraphicsImage] | None = None
        self._probed = False

    def available(self) -> type[GraphicsImage] | None:
        if not self._probed:
            self._probed = True
            for protocol in self._protocols:
                if protocol.is_supported():
                    self._selected = protocol
                    break
        return self._selected

    def ensure_available(self) -> None:
        if self.available() is None:
            raise TerminalGraphicsUnavailable()

    def encode(self, image: Image.Image, out: TextIO) -> None:
        protocol = self.available()
        if protocol is None:
            raise TerminalGraphicsUnavailable()
        try:
            rendered = str(protocol(image))
        except (TermImageError, ValueError) as exc:
            raise EncodeError(f"unable to encode image: {exc}") from exc
        out.write(rendered)
        out.write("\n")
        out.flush()


__all__ = [
    "DEFAULT_PROTOCOLS",
    "Encoder",
    "TerminalEncoder",
]
