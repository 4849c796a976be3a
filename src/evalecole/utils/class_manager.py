"""Class management utilities."""

import logging
from typing import List

from evalecole.core.exceptions import ClassNotFoundError, ValidationError
from evalecole.schemas.class_schema import ClassGroup
from evalecole.utils.entity_store import EntityStore

logger = logging.getLogger(__name__)


class ClassManager:
    """Manages class operations through an EntityStore."""

    def __init__(self, store: EntityStore):
        self.store = store

    def list_classes(self) -> List[ClassGroup]:
        return self.store.list_classes()

    def get_class(self, class_id: str) -> ClassGroup:
        for class_group in self.store.list_classes():
            if class_group.id == class_id:
                return class_group
        raise ClassNotFoundError(class_id)

    def create_class(self, name: str) -> ClassGroup:
        name = name.strip()
        if not name:
            raise ValidationError("Class name cannot be empty.")
        class_group = self.store.add_class(name)
        logger.info("Created class %s (%s)", class_group.id, name)
        return class_group

    def delete_class(self, class_id: str) -> None:
        """Delete a class.

        Students and teachers referencing it keep the dangling id and show
        as unassigned.

        Raises:
            ClassNotFoundError: If class not found.
        """
        self.get_class(class_id)
        self.store.delete_class(class_id)
        logger.info("Deleted class: %s", class_id)
