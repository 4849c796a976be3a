"""Durable session slot of the command-line client.

The logged-in identity is kept under config.SESSION_KEY in a key-value file
and restored on the next launch, after checking that the user still exists
and is still active.
"""

import logging
from pathlib import Path
from typing import Optional

from evalecole import config
from evalecole.schemas.user import User, UserInfo
from evalecole.utils.entity_store import EntityStore
from evalecole.utils.kv_file import KeyValueFile

logger = logging.getLogger(__name__)


class SessionSlot:
    def __init__(self, path: Path, key: str = config.SESSION_KEY):
        self.kv = KeyValueFile(path)
        self.key = key

    def save(self, user: User) -> None:
        self.kv.set(self.key, UserInfo.from_user(user).model_dump(mode="json", by_alias=True))

    def clear(self) -> None:
        self.kv.remove(self.key)

    def restore(self, store: EntityStore) -> Optional[User]:
        """Return the stored user if they can still use the application.

        The slot is cleared when the user was deleted or deactivated, or when
        its content is unreadable. Store failures propagate.
        """
        cached = self.kv.get(self.key)
        if not cached:
            return None
        user_id = cached.get("id") if isinstance(cached, dict) else None
        if not user_id:
            logger.warning("Discarding malformed session slot")
            self.clear()
            return None

        user = store.get_user(user_id)
        if user is None or not user.active:
            logger.info("Session of %s is no longer valid", user_id)
            self.clear()
            return None
        return user
