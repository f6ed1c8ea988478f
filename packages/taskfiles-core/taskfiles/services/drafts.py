"""
Draft Store for Taskfiles.

Keeps one unsaved edit in local storage so it survives a restart.

A task's sha changes on every save, so drafts are matched to tasks by a key
derived from the file path instead. Draft persistence is best effort: a
failed write or an unreadable slot is logged and treated as "no draft",
never raised to the editor.
"""

import json
import logging
import time
from typing import Callable, Optional

from taskfiles.models.draft import Draft, stable_draft_key
from taskfiles.storage.interface import KeyValueStore

logger = logging.getLogger(__name__)

DRAFT_KEY = "todoDraft"
DRAFT_EXPIRY_HOURS = 24


class DraftStore:
    """
    Single-slot draft store.

    Exactly one draft is kept under ``key``; saving replaces whatever was
    there (last writer wins, including across processes).
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DRAFT_KEY,
        expiry_hours: float = DRAFT_EXPIRY_HOURS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize draft store.

        Args:
            store: Local key-value store holding the slot
            key: Storage key of the slot
            expiry_hours: Drafts older than this are purged on read
            clock: Returns the current time in epoch seconds
        """
        self.store = store
        self.key = key
        self.expiry_ms = int(expiry_hours * 60 * 60 * 1000)
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def _read(self) -> Optional[Draft]:
        """Load the slot; raises on unreadable data."""
        raw = await self.store.get(self.key)
        if raw is None:
            return None

        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"draft slot holds {type(data).__name__}, expected object")
        return Draft.from_dict(data)

    async def save_draft(self, draft: Draft) -> None:
        """Persist ``draft``, replacing any existing one. Never raises."""
        try:
            draft.timestamp = self._now_ms()
            draft.stable_draft_key = stable_draft_key(draft.path)
            await self.store.set(self.key, json.dumps(draft.to_dict()))
            logger.debug(f"Draft saved for {draft.path}")
        except Exception as e:
            logger.error(f"Error saving draft for {draft.path}: {e}")

    async def get_draft(self, current_identity: str, path: str) -> Optional[Draft]:
        """
        Return the stored draft if it belongs to ``path`` and has not expired.

        ``current_identity`` is the task's current sha. It is only logged:
        the sha changes on every save, so a draft taken before the last save
        must still match by path.
        """
        try:
            draft = await self._read()
        except Exception as e:
            logger.warning(f"Ignoring unreadable draft: {e}")
            return None

        if draft is None:
            return None

        wanted = stable_draft_key(path)
        if draft.stable_draft_key != wanted:
            logger.debug(f"Draft is for {draft.path!r}, not {path!r}")
            return None

        timestamp = draft.timestamp
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            logger.warning(f"Draft for {draft.path} has no timestamp, discarding")
            await self.clear_draft()
            return None

        age = self._now_ms() - timestamp
        if age > self.expiry_ms:
            logger.info(f"Draft for {draft.path} expired ({age / 3_600_000:.0f} hours old)")
            await self.clear_draft()
            return None

        if draft.todo_id != current_identity:
            logger.debug(f"Draft for {path} predates sha {current_identity}")

        return draft

    async def clear_draft(self) -> None:
        """Remove the stored draft, if any."""
        try:
            await self.store.remove(self.key)
        except Exception as e:
            logger.error(f"Error clearing draft: {e}")

    async def clear_other_drafts(self, keep_identity: str) -> None:
        """Remove the stored draft unless it was taken for ``keep_identity``."""
        try:
            draft = await self._read()
        except Exception as e:
            logger.warning(f"Clearing unreadable draft: {e}")
            await self.clear_draft()
            return

        if draft is not None and draft.todo_id != keep_identity:
            logger.debug(f"Clearing draft for different task: {draft.path}")
            await self.clear_draft()

    async def has_draft(self) -> bool:
        try:
            return await self.store.get(self.key) is not None
        except Exception as e:
            logger.error(f"Error reading draft slot: {e}")
            return False
