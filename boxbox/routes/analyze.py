"""Image analysis route."""
import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from boxbox.auth import get_current_user
from boxbox.models.user import User
from boxbox.schemas.analysis import AnalyzeItemRequest, ItemAnalysis
from boxbox.services.item_analysis import AnalysisError, ItemAnalyzer, create_analyzer

log = logging.getLogger(__name__)

router = APIRouter(tags=["Image Analysis"])


@lru_cache(maxsize=1)
def _default_analyzer() -> Optional[ItemAnalyzer]:
    return create_analyzer()


def get_analyzer() -> ItemAnalyzer:
    """Dependency returning the configured analyzer."""
    analyzer = _default_analyzer()
    if analyzer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Image analysis is not configured"
        )
    return analyzer


@router.post("/analyze-item", response_model=ItemAnalysis)
async def analyze_item(
    request: AnalyzeItemRequest,
    current_user: User = Depends(get_current_user),
    analyzer: ItemAnalyzer = Depends(get_analyzer),
):
    """
    Extract name, description and quantity from a photo.
    
    Profiles trade speed for quality: fast, balanced, high.
    """
    if not request.image or not request.image.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image is required"
        )
    
    try:
        return await analyzer.analyze(request.image, request.profile)
    except AnalysisError as e:
        log.warning("Image analysis failed profile=%s: %s", request.profile, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to analyze item: {e}"
        )
