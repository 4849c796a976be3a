"""Two-step confirmation of destructive operations.

The first request for a destructive operation gets a single-use token bound
to the operation and its subject. Repeating the request with that token
executes it. Tokens expire after config.CONFIRMATION_TTL_SECONDS.
"""

import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

import pytz

from evalecole import config
from evalecole.core.exceptions import ConfirmationRequiredError

logger = logging.getLogger(__name__)


class ConfirmationManager:
    """Issues and redeems confirmation tokens."""

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl = timedelta(
            seconds=config.CONFIRMATION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        )
        self._lock = threading.Lock()
        # token -> (operation, subject, expires_at)
        self._tokens: Dict[str, Tuple[str, str, datetime]] = {}

    def _purge(self, now: datetime) -> None:
        expired = [t for t, (_, _, exp) in self._tokens.items() if exp <= now]
        for token in expired:
            del self._tokens[token]

    def require(
        self, operation: str, subject: str, token: Optional[str], prompt: str
    ) -> None:
        """Return when ``token`` confirms the operation, raise otherwise.

        Args:
            operation: Name of the destructive operation, e.g. "delete_user".
            subject: Identifier of the targeted entity ("*" for global ones).
            token: Token sent back by the caller, if any.
            prompt: Question shown to the caller when a confirmation is needed.

        Raises:
            ConfirmationRequiredError: Carrying a fresh token when ``token`` is
                missing, unknown, expired or bound to another operation.
        """
        now = datetime.now(pytz.utc)
        with self._lock:
            self._purge(now)
            if token and token in self._tokens:
                bound_operation, bound_subject, _ = self._tokens[token]
                if (bound_operation, bound_subject) == (operation, subject):
                    del self._tokens[token]
                    logger.info("Confirmed %s on %s", operation, subject)
                    return
                logger.warning(
                    "Token for %s on %s used for %s on %s",
                    bound_operation, bound_subject, operation, subject,
                )
            new_token = secrets.token_urlsafe(16)
            self._tokens[new_token] = (operation, subject, now + self.ttl)
        raise ConfirmationRequiredError(operation, subject, new_token, prompt)
