"""QR code schemas."""
from boxbox.schemas.base import CamelModel


class QrCodeResponse(CamelModel):
    """A box label: PNG data URL plus the link it encodes."""
    qr_code: str
    url: str
