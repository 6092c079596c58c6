"""QR rendering for payment requests, as PNG data URIs for direct use in <img>."""

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M

DATA_URI_PREFIX = "data:image/png;base64,"


def render_qr_data_uri(payload: str, box_size: int = 10, border: int = 4) -> str:
    """
    Render payload as a black-on-white QR code.

    Args:
        payload: Text to encode (typically a BOLT11 string)
        box_size: Pixels per module
        border: Quiet-zone width in modules (4 is the scanner minimum)

    Raises:
        ValueError: If payload is empty
    """
    if not payload:
        raise ValueError("payload is required")

    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=box_size, border=border)
    qr.add_data(payload)
    qr.make(fit=True)

    image = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")

    return DATA_URI_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")
