"""Draft repository - in-process storage for listing drafts"""

from threading import Lock
from typing import Callable, Optional

from .models import Draft


class DraftRepository:
    """Repository for drafts; nothing is persisted across restarts"""

    def __init__(self):
        self._drafts: dict[str, Draft] = {}
        # (draft_id, action) pairs with an outbound call in flight
        self._claims: set[tuple[str, str]] = set()
        self._lock = Lock()

    def add(self, draft: Draft) -> Draft:
        with self._lock:
            self._drafts[draft.id] = draft
        return draft

    def get(self, draft_id: str) -> Optional[Draft]:
        with self._lock:
            return self._drafts.get(draft_id)

    def save(self, draft: Draft) -> Draft:
        with self._lock:
            self._drafts[draft.id] = draft
        return draft

    def update(self, draft_id: str, change: Callable[[Draft], None]) -> Optional[Draft]:
        """Apply `change` to the stored draft while holding the lock"""
        with self._lock:
            draft = self._drafts.get(draft_id)
            if draft is not None:
                change(draft)
            return draft

    def delete(self, draft_id: str) -> bool:
        with self._lock:
            self._claims = {claim for claim in self._claims if claim[0] != draft_id}
            return self._drafts.pop(draft_id, None) is not None

    def claim(self, draft_id: str, action: str) -> bool:
        """Mark `action` as running for the draft; False when it already is"""
        with self._lock:
            if (draft_id, action) in self._claims:
                return False
            self._claims.add((draft_id, action))
            return True

    def release(self, draft_id: str, action: str) -> None:
        with self._lock:
            self._claims.discard((draft_id, action))


draft_repository = DraftRepository()


def get_draft_repository() -> DraftRepository:
    return draft_repository
