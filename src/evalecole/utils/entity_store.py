"""Entity store contract.

Routes and managers talk to persistence only through ``EntityStore``. Two
implementations exist: ``LocalEntityStore`` (a JSON key-value file) and
``SqlEntityStore`` (relational tables through SQLAlchemy). Both raise
``StoreError`` when a read or write fails; neither retries.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from evalecole.core.exceptions import ProvisioningError
from evalecole.schemas.class_schema import ClassGroup
from evalecole.schemas.point_event import PointEvent
from evalecole.schemas.user import User


class ProvisioningStatus(str, Enum):
    READY = "ready"
    NEEDS_PROVISIONING = "needs_provisioning"


class EntityStore(ABC):
    """CRUD over users, classes and point events."""

    def ensure_ready(self) -> None:
        """Raise ProvisioningError until the schema probe succeeds.

        A READY result is remembered; a missing schema is probed again on
        the next call, so provisioning takes effect without a restart.
        """
        if getattr(self, "_ready", False):
            return
        if self.initialize() != ProvisioningStatus.READY:
            raise ProvisioningError("tables are missing or inaccessible")
        self._ready = True

    @abstractmethod
    def initialize(self) -> ProvisioningStatus:
        """Check that the backing schema exists.

        Returns:
            READY when the store can be used, NEEDS_PROVISIONING when its
            schema has to be created first. Empty collections are READY.
        """

    # --- Users ---

    @abstractmethod
    def list_users(self) -> List[User]:
        ...

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def upsert_user(self, user: User) -> None:
        ...

    @abstractmethod
    def delete_user(self, user_id: str) -> None:
        ...

    # --- Classes ---

    @abstractmethod
    def list_classes(self) -> List[ClassGroup]:
        """Every class, ordered by name."""

    @abstractmethod
    def add_class(self, name: str) -> ClassGroup:
        ...

    @abstractmethod
    def delete_class(self, class_id: str) -> None:
        """Delete a class. Students referencing it are left untouched."""

    # --- Events ---

    @abstractmethod
    def list_events(self) -> List[PointEvent]:
        ...

    @abstractmethod
    def list_events_for_target(self, user_id: str) -> List[PointEvent]:
        ...

    @abstractmethod
    def append_event(self, event: PointEvent) -> None:
        ...

    @abstractmethod
    def delete_all_events(self) -> None:
        ...

    @abstractmethod
    def delete_events_for_target(self, user_id: str) -> None:
        ...
