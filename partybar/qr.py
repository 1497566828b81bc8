"""QR images for coin codes, shown on the admin screen for guests to scan."""

import io
import logging

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError

logger = logging.getLogger(__name__)

# Short codes fit the smallest symbol; large modules scan from across the bar
MODULE_PIXELS = 12
QUIET_ZONE = 4


def render_code_png(code: str, module_pixels: int = MODULE_PIXELS) -> bytes:
    """PNG bytes for ``code``, or b"" when the code cannot be encoded."""
    symbol = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=module_pixels, border=QUIET_ZONE)
    symbol.add_data(code.strip().upper())
    try:
        symbol.make(fit=True)
    except DataOverflowError:
        logger.warning("Coin code %r is too long for a QR symbol", code)
        return b""

    out = io.BytesIO()
    symbol.make_image().save(out)
    return out.getvalue()
