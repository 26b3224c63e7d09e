from __future__ import annotations

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from PIL import Image

from ..compose import add_border
from ..config import TRANSPARENT, RenderConfig


QR_MIME = "image/bitmap"
QR_BOX_SIZE = 10


def render_qr(text: str, config: RenderConfig) -> Image.Image:
    """Encode *text* as a QR code in the configured colors, framed by the border."""

    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=QR_BOX_SIZE, border=0)
    qr.add_data(text)
    qr.make(fit=True)
    back = config.background if config.background_rgba is not None else TRANSPARENT
    img = qr.make_image(fill_color=config.foreground, back_color=back).get_image()
    return add_border(img.convert("RGBA"), config)


__all__ = ["QR_MIME", "render_qr"]
