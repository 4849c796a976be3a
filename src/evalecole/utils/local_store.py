"""Local entity store.

Keeps the three collections as JSON lists under fixed keys of a
``KeyValueFile``, exactly as the web client keeps them in local storage.
The store seeds itself with the demo data the first time it is initialized.
"""

import logging
import secrets
from pathlib import Path
from typing import List, Optional

from evalecole import config
from evalecole.schemas.class_schema import ClassGroup
from evalecole.schemas.point_event import PointEvent
from evalecole.schemas.user import User
from evalecole.utils.converters import dict_to_record, dicts_to_records, record_to_dict
from evalecole.utils.entity_store import EntityStore, ProvisioningStatus
from evalecole.utils.kv_file import KeyValueFile
from evalecole.utils.provisioning import seed_classes, seed_users

logger = logging.getLogger(__name__)


class LocalEntityStore(EntityStore):
    """Entity store backed by a JSON key-value file."""

    def __init__(self, path: Path, seed: bool = True):
        """Initialize LocalEntityStore.

        Args:
            path: Location of the key-value file.
            seed: Whether ``initialize`` writes the demo data on first use.
        """
        self.kv = KeyValueFile(path)
        self.seed = seed

    def initialize(self) -> ProvisioningStatus:
        with self.kv.lock:
            if not self.kv.contains(config.INIT_KEY):
                if self.seed:
                    self.kv.set(config.CLASSES_KEY, [record_to_dict(c) for c in seed_classes()])
                    self.kv.set(config.USERS_KEY, [record_to_dict(u) for u in seed_users()])
                    self.kv.set(config.EVENTS_KEY, [])
                    logger.info("Seeded local store at %s", self.kv.path)
                self.kv.set(config.INIT_KEY, True)
        return ProvisioningStatus.READY

    def _items(self, key: str) -> list:
        return self.kv.get(key) or []

    # --- Users ---

    def list_users(self) -> List[User]:
        return dicts_to_records(User, self._items(config.USERS_KEY))

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self.list_users():
            if user.id == user_id:
                return user
        return None

    def upsert_user(self, user: User) -> None:
        with self.kv.lock:
            items = self._items(config.USERS_KEY)
            record = record_to_dict(user)
            for index, item in enumerate(items):
                if isinstance(item, dict) and item.get("id") == user.id:
                    items[index] = record
                    break
            else:
                items.append(record)
            self.kv.set(config.USERS_KEY, items)

    def delete_user(self, user_id: str) -> None:
        with self.kv.lock:
            items = [
                item for item in self._items(config.USERS_KEY)
                if not (isinstance(item, dict) and item.get("id") == user_id)
            ]
            self.kv.set(config.USERS_KEY, items)

    # --- Classes ---

    def list_classes(self) -> List[ClassGroup]:
        classes = dicts_to_records(ClassGroup, self._items(config.CLASSES_KEY))
        return sorted(classes, key=lambda c: c.name)

    def add_class(self, name: str) -> ClassGroup:
        class_group = ClassGroup(id=secrets.token_hex(8), name=name)
        with self.kv.lock:
            items = self._items(config.CLASSES_KEY)
            items.append(record_to_dict(class_group))
            self.kv.set(config.CLASSES_KEY, items)
        return class_group

    def delete_class(self, class_id: str) -> None:
        with self.kv.lock:
            items = [
                item for item in self._items(config.CLASSES_KEY)
                if not (isinstance(item, dict) and item.get("id") == class_id)
            ]
            self.kv.set(config.CLASSES_KEY, items)

    # --- Events ---

    def list_events(self) -> List[PointEvent]:
        return dicts_to_records(PointEvent, self._items(config.EVENTS_KEY))

    def list_events_for_target(self, user_id: str) -> List[PointEvent]:
        return [e for e in self.list_events() if e.target_user_id == user_id]

    def append_event(self, event: PointEvent) -> None:
        with self.kv.lock:
            items = self._items(config.EVENTS_KEY)
            items.append(record_to_dict(event))
            self.kv.set(config.EVENTS_KEY, items)

    def delete_all_events(self) -> None:
        self.kv.set(config.EVENTS_KEY, [])

    def delete_events_for_target(self, user_id: str) -> None:
        with self.kv.lock:
            items = []
            for item in self._items(config.EVENTS_KEY):
                # Match on the parsed record so either key spelling is removed
                event = dict_to_record(PointEvent, item)
                if event is None or event.target_user_id != user_id:
                    items.append(item)
            self.kv.set(config.EVENTS_KEY, items)
