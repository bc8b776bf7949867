"""Box routes."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from boxbox.auth import get_current_user
from boxbox.config import settings
from boxbox.database import get_db
from boxbox.models.user import User
from boxbox.models.box import Box
from boxbox.models.item import Item
from boxbox.schemas.box import BoxCreate, BoxResponse, BoxUpdate, BoxWithItems, RecountResult
from boxbox.schemas.item import ItemResponse
from boxbox.services.inventory import apply_search, recount_boxes

log = logging.getLogger(__name__)

router = APIRouter(prefix="/boxes", tags=["Boxes"])


def get_box_or_404(db: Session, box_id: str) -> Box:
    box = db.query(Box).filter(Box.id == box_id).first()
    if not box:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Box not found"
        )
    return box


@router.get("", response_model=List[BoxResponse])
async def list_boxes(
    search: Optional[str] = Query(None, description="Search by name or description"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List all boxes, newest first, optionally filtered by a search term."""
    query = apply_search(db.query(Box), Box, search)
    return query.order_by(Box.created_at.desc(), Box.id.desc()).all()


@router.post("", response_model=BoxResponse, status_code=status.HTTP_201_CREATED)
async def create_box(
    box_data: BoxCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a new, empty box."""
    db_box = Box(
        name=box_data.name,
        description=box_data.description or "",
        color=box_data.color or settings.DEFAULT_BOX_COLOR,
        item_count=0,
    )
    db.add(db_box)
    db.commit()
    db.refresh(db_box)
    log.info("Created box id=%s name=%r", db_box.id, db_box.name)
    return db_box


@router.post("/recount", response_model=RecountResult)
async def recount_item_counts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Recompute every box's item count from the items it actually holds."""
    checked, corrected = recount_boxes(db)
    db.commit()
    if corrected:
        log.warning("Recount corrected %d of %d boxes", corrected, checked)
    return RecountResult(checked=checked, corrected=corrected)


@router.get("/{box_id}", response_model=BoxWithItems)
async def get_box(
    box_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a specific box with its items, newest first."""
    box = get_box_or_404(db, box_id)
    items = (
        db.query(Item)
        .filter(Item.box_id == box_id)
        .order_by(Item.created_at.desc(), Item.id.desc())
        .all()
    )
    return BoxWithItems(
        **BoxResponse.model_validate(box).model_dump(),
        items=[ItemResponse.model_validate(item) for item in items],
    )


@router.patch("/{box_id}", response_model=BoxResponse)
async def update_box(
    box_id: str,
    box_update: BoxUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update a box's name, description or color."""
    box = get_box_or_404(db, box_id)
    
    update_data = box_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None:
            continue
        setattr(box, field, value)
    
    db.commit()
    db.refresh(box)
    return box


@router.delete("/{box_id}")
async def delete_box(
    box_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a box together with all of its items."""
    box = get_box_or_404(db, box_id)
    db.delete(box)
    db.commit()
    log.info("Deleted box id=%s", box_id)
    return {"success": True}
