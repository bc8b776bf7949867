"""QR code routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from boxbox.auth import get_current_user
from boxbox.database import get_db
from boxbox.models.user import User
from boxbox.routes.boxes import get_box_or_404
from boxbox.schemas.qr import QrCodeResponse
from boxbox.services.qr_codes import box_url, qr_data_url

router = APIRouter(prefix="/qr", tags=["QR Codes"])


@router.get("/{box_id}", response_model=QrCodeResponse)
async def get_box_qr_code(
    box_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a printable QR label linking to a box."""
    get_box_or_404(db, box_id)
    url = box_url(box_id)
    return QrCodeResponse(qr_code=qr_data_url(url), url=url)
