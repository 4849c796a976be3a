"""Relational entity store.

Maps the ``users``, ``classes`` and ``events`` tables to domain records
through ``utils.converters``. Each operation runs in its own short-lived
session; there is no transaction spanning several operations.
"""

import logging
import secrets
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from evalecole.core.exceptions import StoreError
from evalecole.models.class_model import ClassModel
from evalecole.models.point_event import PointEventModel
from evalecole.models.user import UserModel
from evalecole.schemas.class_schema import ClassGroup
from evalecole.schemas.point_event import PointEvent
from evalecole.schemas.user import User
from evalecole.utils.converters import (
    class_to_model,
    event_to_model,
    model_to_class,
    model_to_event,
    model_to_user,
    models_to_records,
    user_to_model,
)
from evalecole.utils.entity_store import EntityStore, ProvisioningStatus

logger = logging.getLogger(__name__)

REQUIRED_TABLES = (
    UserModel.__tablename__,
    ClassModel.__tablename__,
    PointEventModel.__tablename__,
)


class SqlEntityStore(EntityStore):
    """Entity store backed by SQLAlchemy tables."""

    def __init__(self, engine: Engine, session_factory: Optional[sessionmaker] = None):
        """Initialize SqlEntityStore.

        Args:
            engine: Engine used for the schema probe.
            session_factory: Factory for per-operation sessions. Defaults to
                a sessionmaker bound to ``engine``.
        """
        self.engine = engine
        self.session_factory = session_factory or sessionmaker(
            autocommit=False, autoflush=False, bind=engine
        )

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Store operation failed: %s", exc)
            raise StoreError(str(exc)) from exc
        finally:
            db.close()

    def initialize(self) -> ProvisioningStatus:
        """Probe for the three tables.

        A missing table, or a probe that cannot even reach the database,
        means the schema must be provisioned. Empty tables are fine.
        """
        try:
            inspector = inspect(self.engine)
            missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
        except SQLAlchemyError as exc:
            logger.warning("Schema probe failed: %s", exc)
            return ProvisioningStatus.NEEDS_PROVISIONING
        if missing:
            logger.warning("Missing tables: %s", ", ".join(missing))
            return ProvisioningStatus.NEEDS_PROVISIONING
        return ProvisioningStatus.READY

    # --- Users ---

    def list_users(self) -> List[User]:
        with self._session() as db:
            return models_to_records(db.query(UserModel).all(), model_to_user)

    def get_user(self, user_id: str) -> Optional[User]:
        with self._session() as db:
            model = db.query(UserModel).filter(UserModel.id == user_id).first()
            if model:
                return model_to_user(model)
            return None

    def upsert_user(self, user: User) -> None:
        with self._session() as db:
            db.merge(user_to_model(user))
            db.commit()

    def delete_user(self, user_id: str) -> None:
        with self._session() as db:
            db.query(UserModel).filter(UserModel.id == user_id).delete()
            db.commit()

    # --- Classes ---

    def list_classes(self) -> List[ClassGroup]:
        with self._session() as db:
            models = db.query(ClassModel).order_by(ClassModel.name).all()
            return models_to_records(models, model_to_class)

    def add_class(self, name: str) -> ClassGroup:
        class_group = ClassGroup(id=secrets.token_hex(8), name=name)
        with self._session() as db:
            db.add(class_to_model(class_group))
            db.commit()
        return class_group

    def delete_class(self, class_id: str) -> None:
        with self._session() as db:
            db.query(ClassModel).filter(ClassModel.id == class_id).delete()
            db.commit()

    # --- Events ---

    def list_events(self) -> List[PointEvent]:
        with self._session() as db:
            models = db.query(PointEventModel).order_by(PointEventModel.date_time).all()
            return models_to_records(models, model_to_event)

    def list_events_for_target(self, user_id: str) -> List[PointEvent]:
        with self._session() as db:
            models = (
                db.query(PointEventModel)
                .filter(PointEventModel.target_user_id == user_id)
                .order_by(PointEventModel.date_time)
                .all()
            )
            return models_to_records(models, model_to_event)

    def append_event(self, event: PointEvent) -> None:
        with self._session() as db:
            db.add(event_to_model(event))
            db.commit()

    def delete_all_events(self) -> None:
        with self._session() as db:
            deleted = db.query(PointEventModel).delete()
            db.commit()
        logger.info("Deleted all %d events", deleted)

    def delete_events_for_target(self, user_id: str) -> None:
        with self._session() as db:
            deleted = (
                db.query(PointEventModel)
                .filter(PointEventModel.target_user_id == user_id)
                .delete()
            )
            db.commit()
        logger.info("Deleted %d events targeting %s", deleted, user_id)
