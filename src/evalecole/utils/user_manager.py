"""User management utilities.

This module provides authentication and the user administration operations
on top of the entity store. Passwords are stored and compared in plaintext.
"""

import logging
from typing import List, Optional

from evalecole.core.exceptions import AuthenticationError, UserNotFoundError
from evalecole.schemas.user import STAFF_ROLES, SaveUserRequest, User, UserRole
from evalecole.utils.entity_store import EntityStore

logger = logging.getLogger(__name__)


class UserManager:
    """Manages user operations through an EntityStore."""

    def __init__(self, store: EntityStore):
        """Initialize UserManager.

        Args:
            store: Entity store holding the users.
        """
        self.store = store

    def authenticate(self, username: str, password: str) -> User:
        """Find the active user matching the credentials.

        Args:
            username: Login name.
            password: Plain text password.

        Returns:
            The matching User.

        Raises:
            AuthenticationError: If no active user matches.
        """
        if username:
            for user in self.store.list_users():
                if (
                    user.active
                    and user.username == username
                    and user.password == password
                ):
                    logger.info("User %s logged in", user.id)
                    return user
        logger.info("Failed login for username %r", username)
        raise AuthenticationError()

    def get_user(self, user_id: str) -> User:
        """Get a user by ID.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def find_user(self, user_id: str) -> Optional[User]:
        return self.store.get_user(user_id)

    def list_users(self) -> List[User]:
        return self.store.list_users()

    def save_user(self, req: SaveUserRequest, user_id: Optional[str] = None) -> User:
        """Create a user, or replace the one with ``user_id``.

        Role-specific fields are normalised: staff members get no
        credentials, only students keep a class and only teachers keep
        assigned classes. Editing without a password keeps the stored one.

        Args:
            req: Submitted form.
            user_id: ID of the user being edited, None to create one.

        Returns:
            The saved User.

        Raises:
            UserNotFoundError: If ``user_id`` is given but does not exist.
        """
        existing = self.get_user(user_id) if user_id is not None else None

        password = req.password
        if password is None:
            password = existing.password if existing else ""

        is_staff = req.role in STAFF_ROLES
        fields = dict(
            full_name=req.full_name.strip(),
            username="" if is_staff else req.username.strip(),
            password="" if is_staff else password,
            role=req.role,
            active=req.active,
            class_id=req.class_id if req.role == UserRole.STUDENT else None,
            assigned_class_ids=(
                list(dict.fromkeys(req.assigned_class_ids))
                if req.role == UserRole.TEACHER
                else None
            ),
        )
        user = User(id=user_id, **fields) if user_id else User(**fields)
        self.store.upsert_user(user)
        logger.info("Saved user %s (%s)", user.id, user.role.value)
        return user

    def delete_user(self, user_id: str) -> None:
        """Delete a user. Their past events are kept.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        self.get_user(user_id)
        self.store.delete_user(user_id)
        logger.info("Deleted user: %s", user_id)
