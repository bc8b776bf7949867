"""Capture-and-enrich: turn a photo into an item without waiting on the model.

The item is created at once with placeholder text and shown in the cache; the
model call and the follow-up patch run as a background task registered under
the item's id. A manual edit or delete of that item cancels the pending task,
so the user's change is never overwritten by a late analysis.
"""
import asyncio
import logging
import math
from typing import Any, Coroutine, Dict, Optional

import httpx

from boxbox.client.api import ApiError, BoxBoxClient
from boxbox.client.cache import (
    QueryCache,
    insert_optimistic_item,
    keys,
    invalidate_after,
    remove_cached_item,
    upsert_cached_item,
)
from boxbox.client.notify import LoggingNotifier, Notifier
from boxbox.schemas.item import ItemResponse

log = logging.getLogger(__name__)

ANALYZING_ITEM_PLACEHOLDER_NAME = "Analyzing photo…"
ANALYZING_ITEM_PLACEHOLDER_DESCRIPTION = "We'll fill in these details shortly."
FALLBACK_ITEM_NAME = "New Item"
ENRICHMENT_PROFILE = "fast"


def normalize_analysis(analysis: Any) -> Dict[str, Any]:
    """Coerce an analysis result into safe item fields.

    Blank names become "New Item"; quantity must be a positive finite number and
    is rounded half-up to an integer of at least 1, otherwise 1.
    """
    name = getattr(analysis, "name", None)
    description = getattr(analysis, "description", None)
    quantity = getattr(analysis, "quantity", None)

    if not isinstance(name, str) or not name.strip():
        name = FALLBACK_ITEM_NAME
    if not isinstance(description, str):
        description = ""
    if (
        isinstance(quantity, (int, float))
        and not isinstance(quantity, bool)
        and math.isfinite(quantity)
        and quantity > 0
    ):
        quantity = max(1, math.floor(quantity + 0.5))
    else:
        quantity = 1
    return {"name": name.strip(), "description": description, "quantity": quantity}


class EnrichmentRegistry:
    """Background enrichment tasks, at most one per item id."""

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}

    def start(self, item_id: str, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        self.cancel(item_id)
        task = asyncio.create_task(coro)
        self._tasks[item_id] = task
        task.add_done_callback(lambda done: self._forget(item_id, done))
        return task

    def _forget(self, item_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(item_id) is task:
            del self._tasks[item_id]

    def pending(self, item_id: str) -> bool:
        task = self._tasks.get(item_id)
        return task is not None and not task.done()

    def cancel(self, item_id: str) -> bool:
        """Cancel the pending task for item_id. Returns True if one was pending."""
        task = self._tasks.get(item_id)
        if task is None or task.done():
            return False
        log.info("Cancelling pending enrichment for item=%s", item_id)
        task.cancel()
        return True

    async def wait(self, item_id: str) -> None:
        task = self._tasks.get(item_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def join(self) -> None:
        """Wait for every task that is currently registered."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)


class CaptureFlow:
    """Orchestrates photo capture, item creation and background enrichment."""

    def __init__(
        self,
        client: BoxBoxClient,
        cache: QueryCache,
        notifier: Optional[Notifier] = None,
        registry: Optional[EnrichmentRegistry] = None,
    ):
        self.client = client
        self.cache = cache
        self.notifier = notifier or LoggingNotifier()
        self.registry = registry or EnrichmentRegistry()
        self.is_processing = False

    async def process_image(self, image: str, box_id: Optional[str]) -> Optional[ItemResponse]:
        """Create an item for a captured photo and start enriching it.

        Returns the created placeholder item, or None when the capture was
        aborted (no box, already processing, or the create call failed).
        """
        if self.is_processing:
            return None

        if not box_id:
            self.notifier.error("Unable to add item: no box selected.")
            return None

        self.is_processing = True
        upload_toast = self.notifier.loading("Uploading photo…")
        try:
            item = await self.client.create_item(
                box_id=box_id,
                name=ANALYZING_ITEM_PLACEHOLDER_NAME,
                description=ANALYZING_ITEM_PLACEHOLDER_DESCRIPTION,
                quantity=1,
                image=image,
            )
        except (ApiError, httpx.HTTPError):
            log.exception("Error saving photo for box=%s", box_id)
            self.notifier.error("Failed to add item. Please try again.", upload_toast)
            return None
        finally:
            self.is_processing = False

        insert_optimistic_item(self.cache, item, box_id)
        self.notifier.success("Photo saved. Analyzing item…", upload_toast)

        analysis_toast = self.notifier.loading("Analyzing item details…")
        self.registry.start(item.id, self._enrich(item, image, box_id, analysis_toast))
        return item

    async def _enrich(self, item: ItemResponse, image: str, box_id: str, toast_id: str) -> None:
        try:
            try:
                analysis = await self.client.analyze_item(image, ENRICHMENT_PROFILE)
                fields = normalize_analysis(analysis)
                updated = await self.client.update_item(item.id, box_id=box_id, **fields)
            except Exception:
                log.exception("Error processing item=%s with %s analysis", item.id, ENRICHMENT_PROFILE)
                self.notifier.error("Fast AI analysis failed. Please edit item details manually.", toast_id)
                await self._apply_fallback(item, box_id)
                return

            upsert_cached_item(self.cache, updated, box_id)
            self.notifier.success("Item analysis complete.", toast_id)
        finally:
            invalidate_after(self.cache, "enrich_item", box_id=box_id)

    async def _apply_fallback(self, item: ItemResponse, box_id: str) -> None:
        try:
            fallback = await self.client.update_item(
                item.id,
                name=FALLBACK_ITEM_NAME,
                description="",
                quantity=1,
                box_id=box_id,
            )
        except (ApiError, httpx.HTTPError):
            log.exception("Error updating fallback state for item=%s", item.id)
            return
        upsert_cached_item(self.cache, fallback, box_id)

    async def update_item(self, item_id: str, **fields) -> ItemResponse:
        """Manual edit. Cancels pending enrichment first so the edit wins."""
        self.registry.cancel(item_id)
        previous = self.cache.get(keys.item(item_id))
        updated = await self.client.update_item(item_id, **fields)
        upsert_cached_item(self.cache, updated, updated.box_id)
        invalidate_after(
            self.cache,
            "update_item",
            item_id=item_id,
            box_id=updated.box_id,
            previous_box_id=previous.box_id if previous is not None else None,
        )
        return updated

    async def delete_item(self, item_id: str, box_id: Optional[str] = None) -> None:
        """Delete an item, cancelling any pending enrichment for it."""
        self.registry.cancel(item_id)
        await self.client.delete_item(item_id)
        remove_cached_item(self.cache, item_id, box_id)
        invalidate_after(self.cache, "delete_item", item_id=item_id, box_id=box_id)
