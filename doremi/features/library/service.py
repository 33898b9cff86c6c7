"""
doremi/features/library/service.py

Canonical collection of published content.

Ordering is most-recent-first. Every read goes back to the store, the
library keeps no cache of its own.
"""

import logging
from typing import List, Optional

from doremi.features.library.models import ContentItem, LibraryStats
from doremi.features.store.keyed_store import KeyedStore
from doremi.features.store.records import RecordCollection

logger = logging.getLogger(__name__)

LIBRARY_BUCKET = "doremi_video_library"
DEFAULT_MAX_ENTRIES = 100


class ContentLibrary:
    """Bounded, most-recent-first content library backed by a keyed store."""

    def __init__(self, store: KeyedStore, max_entries: int = DEFAULT_MAX_ENTRIES, bucket: str = LIBRARY_BUCKET):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._items = RecordCollection(store, bucket, ContentItem)

    def add(self, item: ContentItem) -> ContentItem:
        """
        Insert an item at the head and enforce the entry cap.

        Add-by-id: if the id is already in the library the stored entry is
        left untouched and returned, so adding twice is the same as adding once.

        Raises:
            StoreWriteError: if the library could not be persisted
        """
        existing: List[ContentItem] = []

        def _insert(items: List[ContentItem]) -> Optional[List[ContentItem]]:
            for current in items:
                if current.id == item.id:
                    existing.append(current)
                    return None
            return [item, *items][: self.max_entries]

        self._items.update(_insert)
        if existing:
            logger.info(
                f"[library] {item.id} already published, keeping stored entry",
                extra={"content_id": item.id},
            )
            return existing[0]
        return item

    def list_all(self) -> List[ContentItem]:
        return self._items.all()

    def list_by_instructor(self, instructor_id: str) -> List[ContentItem]:
        return [item for item in self._items.all() if item.instructor_id == instructor_id]

    def get(self, content_id: str) -> Optional[ContentItem]:
        for item in self._items.all():
            if item.id == content_id:
                return item
        return None

    def increment_views(self, content_id: str) -> Optional[ContentItem]:
        """Add one view. Unknown ids are dropped without writing anything."""
        return self._adjust_views(content_id, 1)

    def decrement_views(self, content_id: str) -> Optional[ContentItem]:
        """Take back one view (never below zero). Used to compensate a failed view."""
        return self._adjust_views(content_id, -1)

    def _adjust_views(self, content_id: str, delta: int) -> Optional[ContentItem]:
        updated: List[ContentItem] = []

        def _apply(items: List[ContentItem]) -> Optional[List[ContentItem]]:
            for index, current in enumerate(items):
                if current.id == content_id:
                    changed = current.model_copy(
                        update={"view_count": max(0, current.view_count + delta)}
                    )
                    updated.append(changed)
                    return items[:index] + [changed] + items[index + 1:]
            return None

        self._items.update(_apply)
        return updated[0] if updated else None

    def remove(self, content_id: str) -> bool:
        removed: List[bool] = []

        def _drop(items: List[ContentItem]) -> Optional[List[ContentItem]]:
            kept = [item for item in items if item.id != content_id]
            if len(kept) == len(items):
                return None
            removed.append(True)
            return kept

        self._items.update(_drop)
        return bool(removed)

    def truncate(self, keep: int) -> int:
        """Keep only the `keep` most recent entries. Returns how many were dropped."""
        dropped: List[int] = []

        def _cut(items: List[ContentItem]) -> Optional[List[ContentItem]]:
            if len(items) <= keep:
                return None
            dropped.append(len(items) - keep)
            return items[:keep]

        self._items.update(_cut)
        return dropped[0] if dropped else 0

    def stats(self) -> LibraryStats:
        items = self._items.all()
        total_views = sum(item.view_count for item in items)
        return LibraryStats(
            total_items=len(items),
            total_views=total_views,
            unique_instructors=len({item.instructor_id for item in items}),
            average_views=total_views / len(items) if items else 0.0,
        )
