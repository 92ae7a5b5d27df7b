from sqlalchemy import Column, String, DateTime, Text
from hrms_portal.database.db import Base
from datetime import datetime

class StorageEntry(Base):
    """
    One key/value item of a browser's persisted storage.
    A browser holds at most one value per key.
    """
    __tablename__ = "browser_storage"

    browser_id = Column(String(64), primary_key=True)
    """Identifier issued to the browser in a cookie"""

    key = Column(String(64), primary_key=True, index=True)
    """Storage key, e.g. 'token' or 'user'"""

    value = Column(Text, nullable=False)
    """Stored string value"""

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<StorageEntry(browser_id={self.browser_id}, key={self.key})>"
