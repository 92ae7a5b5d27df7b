"""Per-browser persisted storage"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from hrms_portal.database.db import session_scope
from hrms_portal.models.storage import StorageEntry

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
TOASTS_KEY = "toasts"

def new_browser_id() -> str:
    return uuid.uuid4().hex

class BrowserStorage:
    """
    String key/value storage belonging to one browser.
    Every call is its own transaction, so values survive restarts.
    """

    def __init__(self, session_factory: sessionmaker, browser_id: str):
        self.session_factory = session_factory
        self.browser_id = browser_id

    def get_item(self, key: str) -> Optional[str]:
        with session_scope(self.session_factory) as db:
            entry = db.get(StorageEntry, (self.browser_id, key))
            return entry.value if entry else None

    def set_item(self, key: str, value: str):
        with session_scope(self.session_factory) as db:
            entry = db.get(StorageEntry, (self.browser_id, key))
            if entry:
                entry.value = value
            else:
                db.add(StorageEntry(browser_id=self.browser_id, key=key, value=value))

    def remove_item(self, key: str):
        with session_scope(self.session_factory) as db:
            db.query(StorageEntry).filter(
                StorageEntry.browser_id == self.browser_id,
                StorageEntry.key == key
            ).delete()

    def clear(self):
        with session_scope(self.session_factory) as db:
            db.query(StorageEntry).filter(
                StorageEntry.browser_id == self.browser_id
            ).delete()

class StorageRegistry:
    """Hands out BrowserStorage objects and finds browsers by stored key."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def for_browser(self, browser_id: str) -> BrowserStorage:
        return BrowserStorage(self.session_factory, browser_id)

    def browsers_with_item(self, key: str) -> List[str]:
        with session_scope(self.session_factory) as db:
            rows = db.query(StorageEntry.browser_id).filter(
                StorageEntry.key == key
            ).all()
            return [row[0] for row in rows]
