"""Item routes."""
import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from boxbox.auth import get_current_user
from boxbox.config import settings
from boxbox.database import get_db
from boxbox.models.user import User
from boxbox.models.item import Item
from boxbox.routes.boxes import get_box_or_404
from boxbox.schemas.item import ItemCreate, ItemPage, ItemResponse, ItemUpdate
from boxbox.services.inventory import (
    InvalidCursor,
    adjust_item_count,
    apply_cursor,
    apply_search,
    clamp_page_size,
    encode_cursor,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["Items"])


def get_item_or_404(db: Session, item_id: str) -> Item:
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found"
        )
    return item


@router.get("", response_model=Union[ItemPage, List[ItemResponse]])
async def list_items(
    box_id: Optional[str] = Query(None, alias="boxId", description="Filter by box"),
    search: Optional[str] = Query(None, description="Search by name or description"),
    limit: Optional[int] = Query(None, description="Page size; enables pagination"),
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    List items, newest first.
    
    Without limit or cursor the full list is returned. With either, a page of
    {items, nextCursor} is returned, ordered by (createdAt, id) descending.
    """
    query = db.query(Item)
    
    if box_id:
        query = query.filter(Item.box_id == box_id)
    
    query = apply_search(query, Item, search)
    
    if limit is None and not cursor:
        return query.order_by(Item.created_at.desc(), Item.id.desc()).all()
    
    try:
        query = apply_cursor(query, cursor)
    except InvalidCursor:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid cursor"
        )
    
    page_size = clamp_page_size(limit, settings.ITEMS_PAGE_SIZE, settings.ITEMS_PAGE_MAX)
    rows = (
        query.order_by(Item.created_at.desc(), Item.id.desc())
        .limit(page_size + 1)
        .all()
    )
    
    next_cursor = None
    if len(rows) > page_size:
        rows = rows[:page_size]
        last = rows[-1]
        next_cursor = encode_cursor(last.created_at, last.id)
    
    return ItemPage(
        items=[ItemResponse.model_validate(row) for row in rows],
        next_cursor=next_cursor,
    )


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a new item in a box and bump the box's item count."""
    get_box_or_404(db, item_data.box_id)
    
    db_item = Item(
        box_id=item_data.box_id,
        name=item_data.name,
        description=item_data.description or "",
        quantity=item_data.quantity,
        image=item_data.image,
    )
    db.add(db_item)
    adjust_item_count(db, item_data.box_id, +1)
    db.commit()
    db.refresh(db_item)
    log.info("Created item id=%s box=%s", db_item.id, db_item.box_id)
    return db_item


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a specific item."""
    return get_item_or_404(db, item_id)


@router.patch("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    item_update: ItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update an item. A new boxId moves it and adjusts both boxes' counts."""
    item = get_item_or_404(db, item_id)
    old_box_id = item.box_id
    
    # Check if new box exists
    if item_update.box_id and item_update.box_id != old_box_id:
        get_box_or_404(db, item_update.box_id)
    
    update_data = item_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None:
            continue
        setattr(item, field, value)
    
    if item.box_id != old_box_id:
        adjust_item_count(db, old_box_id, -1)
        adjust_item_count(db, item.box_id, +1)
        log.info("Moved item id=%s from box=%s to box=%s", item.id, old_box_id, item.box_id)
    
    db.commit()
    db.refresh(item)
    return item


@router.delete("/{item_id}")
async def delete_item(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete an item and decrement its box's item count."""
    item = get_item_or_404(db, item_id)
    box_id = item.box_id
    
    db.delete(item)
    adjust_item_count(db, box_id, -1)
    db.commit()
    log.info("Deleted item id=%s box=%s", item_id, box_id)
    return {"success": True}
