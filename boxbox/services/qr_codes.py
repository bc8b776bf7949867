"""QR code rendering for box labels."""
import base64
import io

import qrcode
import qrcode.image.pil
from qrcode.constants import ERROR_CORRECT_M

from boxbox.config import settings

QR_TARGET_PX = 512
QR_BORDER = 2


def box_url(box_id: str) -> str:
    """Public link a box label points to."""
    return f"{settings.PUBLIC_APP_URL.rstrip('/')}/box/{box_id}"


def qr_data_url(data: str, size: int = QR_TARGET_PX, border: int = QR_BORDER) -> str:
    """Render data as a black-on-white PNG QR code and return it as a data URL."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    modules = qr.modules_count + 2 * border
    qr.box_size = max(1, size // modules)

    img = qr.make_image(
        image_factory=qrcode.image.pil.PilImage,
        fill_color="#000000",
        back_color="#FFFFFF",
    )
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"
