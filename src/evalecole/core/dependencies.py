"""Dependency injection module for FastAPI.

This module provides the store, the managers built on it and the
process-wide guards that FastAPI routes receive through ``Depends``.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends

from evalecole import config
from evalecole.utils.class_manager import ClassManager
from evalecole.utils.confirmation import ConfirmationManager
from evalecole.utils.entity_store import EntityStore
from evalecole.utils.local_store import LocalEntityStore
from evalecole.utils.point_manager import PointManager
from evalecole.utils.sql_store import SqlEntityStore
from evalecole.utils.submission import SubmissionGuard
from evalecole.utils.user_manager import UserManager

logger = logging.getLogger(__name__)

# Process-wide singletons
_store_instance: Optional[EntityStore] = None
_submission_guard_instance: Optional[SubmissionGuard] = None
_confirmation_manager_instance: Optional[ConfirmationManager] = None


def build_store(backend: Optional[str] = None) -> EntityStore:
    """Create the entity store selected by config.STORE_BACKEND.

    Args:
        backend: "sql" or "local"; overrides the configured backend.

    Raises:
        ValueError: If the backend name is unknown.
    """
    backend = (backend or config.STORE_BACKEND).lower()
    if backend == "local":
        logger.info("Using local store at %s", config.LOCAL_STORE_PATH)
        return LocalEntityStore(config.LOCAL_STORE_PATH)
    if backend == "sql":
        # Lazy import: the database module builds the configured engine on import
        from evalecole.core.database import SessionLocal, engine

        logger.info("Using SQL store")
        return SqlEntityStore(engine, SessionLocal)
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")


def get_store() -> EntityStore:
    """Get the EntityStore singleton instance."""
    global _store_instance
    if _store_instance is None:
        _store_instance = build_store()
    return _store_instance


def get_ready_store(store: EntityStore = Depends(get_store)) -> EntityStore:
    """Get the store, failing with ProvisioningError while its schema is missing."""
    store.ensure_ready()
    return store


def get_submission_guard() -> SubmissionGuard:
    global _submission_guard_instance
    if _submission_guard_instance is None:
        _submission_guard_instance = SubmissionGuard()
    return _submission_guard_instance


def get_confirmation_manager() -> ConfirmationManager:
    global _confirmation_manager_instance
    if _confirmation_manager_instance is None:
        _confirmation_manager_instance = ConfirmationManager()
    return _confirmation_manager_instance


def get_user_manager(store: EntityStore = Depends(get_ready_store)) -> UserManager:
    """Get UserManager instance over the ready store.

    Args:
        store: Entity store.

    Returns:
        UserManager instance.
    """
    return UserManager(store)


def get_class_manager(store: EntityStore = Depends(get_ready_store)) -> ClassManager:
    """Get ClassManager instance over the ready store."""
    return ClassManager(store)


def get_point_manager(
    store: EntityStore = Depends(get_ready_store),
    guard: SubmissionGuard = Depends(get_submission_guard),
) -> PointManager:
    """Get PointManager instance sharing the process-wide submission guard."""
    return PointManager(store, guard)


# Type aliases for dependency injection
StoreDep = Annotated[EntityStore, Depends(get_ready_store)]
UserManagerDep = Annotated[UserManager, Depends(get_user_manager)]
ClassManagerDep = Annotated[ClassManager, Depends(get_class_manager)]
PointManagerDep = Annotated[PointManager, Depends(get_point_manager)]
ConfirmationManagerDep = Annotated[
    ConfirmationManager, Depends(get_confirmation_manager)
]
