"""Custom exception classes for Éval'École.

This module defines application-specific exceptions following Google Python
Style Guide. Store-layer failures raise to the calling route, which turns them
into an error response; the rule engine never raises them.
"""

from typing import Optional


class EvalEcoleError(Exception):
    """Base exception for all Éval'École errors."""

    pass


class ProvisioningError(EvalEcoleError):
    """Raised when the backing store's schema is missing or inaccessible."""

    def __init__(self, detail: Optional[str] = None):
        """Initialize the exception.

        Args:
            detail: Optional description of what the schema probe found.
        """
        self.detail = detail
        message = "The database schema must be provisioned before use"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class AuthenticationError(EvalEcoleError):
    """Raised when credentials do not match an active user."""

    def __init__(self, message: str = "Identifiant ou mot de passe incorrect."):
        super().__init__(message)


class StoreError(EvalEcoleError):
    """Raised when a read or write against the entity store fails."""

    pass


class UserNotFoundError(EvalEcoleError):
    """Raised when a requested user cannot be found."""

    def __init__(self, user_id: str):
        """Initialize the exception.

        Args:
            user_id: The ID of the user that was not found.
        """
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")


class ClassNotFoundError(EvalEcoleError):
    """Raised when a requested class cannot be found."""

    def __init__(self, class_id: str):
        """Initialize the exception.

        Args:
            class_id: The ID of the class that was not found.
        """
        self.class_id = class_id
        super().__init__(f"Class '{class_id}' not found")


class ValidationError(EvalEcoleError):
    """Raised when data validation fails."""

    pass


class InvalidSubmissionError(ValidationError):
    """Raised when a point submission is incomplete or not allowed."""

    pass


class SubmissionInProgressError(EvalEcoleError):
    """Raised when an actor submits again before the previous one settled."""

    def __init__(self, actor_id: str):
        self.actor_id = actor_id
        super().__init__(f"A submission from '{actor_id}' is already in progress")


class ConfirmationRequiredError(EvalEcoleError):
    """Raised when a destructive operation needs a second, confirmed call."""

    def __init__(self, operation: str, subject: str, token: str, prompt: str):
        """Initialize the exception.

        Args:
            operation: Name of the destructive operation.
            subject: Identifier of the entity the operation targets.
            token: Single-use token to send back to confirm.
            prompt: Human-readable confirmation question.
        """
        self.operation = operation
        self.subject = subject
        self.token = token
        self.prompt = prompt
        super().__init__(prompt)


class RouteNotPermittedError(EvalEcoleError):
    """Raised when a role opens a view it has no access to."""

    def __init__(self, route: str, role: str):
        self.route = route
        self.role = role
        super().__init__(f"Role '{role}' cannot open '{route}'")
