from __future__ import annotations

import io

import qrcode

from ..core.constants import QR_BORDER, QR_BOX_SIZE


def render_qr_png(payload: str, *, box_size: int = QR_BOX_SIZE, border: int = QR_BORDER) -> bytes:
    """Render a verification payload as a PNG QR code."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
