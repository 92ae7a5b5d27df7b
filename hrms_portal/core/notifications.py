"""Toast notifications queued per browser"""

import enum
import json
import logging
from typing import List

from pydantic import BaseModel

from hrms_portal.core.state import BrowserStorage, TOASTS_KEY

logger = logging.getLogger(__name__)

class ToastKind(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"

class Toast(BaseModel):
    kind: ToastKind
    message: str

class Notifier:
    """
    Queue of toasts shown on the browser's next rendered page.
    Queued toasts survive redirects because they live in browser storage.
    """

    def __init__(self, storage: BrowserStorage):
        self.storage = storage

    def _load(self) -> List[Toast]:
        raw = self.storage.get_item(TOASTS_KEY)
        if not raw:
            return []
        try:
            return [Toast(**item) for item in json.loads(raw)]
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable toast queue: {str(e)}")
            return []

    def push(self, kind: ToastKind, message: str):
        toasts = self._load()
        toasts.append(Toast(kind=kind, message=message))
        self.storage.set_item(
            TOASTS_KEY,
            json.dumps([toast.model_dump(mode="json") for toast in toasts])
        )

    def success(self, message: str):
        self.push(ToastKind.SUCCESS, message)

    def error(self, message: str):
        self.push(ToastKind.ERROR, message)

    def info(self, message: str):
        self.push(ToastKind.INFO, message)

    def pop_all(self) -> List[Toast]:
        toasts = self._load()
        if toasts:
            self.storage.remove_item(TOASTS_KEY)
        return toasts
