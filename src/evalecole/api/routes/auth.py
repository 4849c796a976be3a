"""Authentication routes.

This module handles login, the current identity and the role menu. The
bearer token only carries the user id: every request reloads the user and
rejects it if it was deleted or deactivated since the token was issued.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

import pytz
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from evalecole import config
from evalecole.core.dependencies import UserManagerDep
from evalecole.core.session import SessionContext
from evalecole.schemas.user import LoginRequest, LoginResponse, User, UserInfo
from evalecole.utils.visibility import Route

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# HTTP Bearer token security
security = HTTPBearer()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        data: Data to encode in the token.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(pytz.utc) + expires_delta
    else:
        expire = datetime.now(pytz.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Verify JWT token from Authorization header.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    token = credentials.credentials
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    if payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return payload


def get_current_user(
    user_manager: UserManagerDep,
    token_payload: dict = Depends(verify_token),
) -> User:
    """Get current authenticated user.

    Raises:
        HTTPException: If the user no longer exists or was deactivated.
    """
    user = user_manager.find_user(token_payload["sub"])
    if user is None or not user.active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def get_session(current_user: User = Depends(get_current_user)) -> SessionContext:
    return SessionContext(user=current_user)


def require_route(route: Route) -> Callable[..., SessionContext]:
    """Dependency factory guarding a view.

    A role without access is redirected to the dashboard by the
    RouteNotPermittedError handler.
    """

    def _guard(session: SessionContext = Depends(get_session)) -> SessionContext:
        session.require(route)
        return session

    return _guard


@router.post("/login", response_model=LoginResponse, summary="Connexion")
def login(req: LoginRequest, user_manager: UserManagerDep) -> LoginResponse:
    """Authenticate with username and password.

    Raises:
        AuthenticationError: If no active user matches (answered with 401).
    """
    user = user_manager.authenticate(req.username, req.password)
    token = create_access_token({"sub": user.id, "role": user.role.value})
    return LoginResponse(access_token=token, user=UserInfo.from_user(user))


@router.get("/me", response_model=UserInfo, summary="Utilisateur courant")
def me(session: SessionContext = Depends(get_session)) -> UserInfo:
    return UserInfo.from_user(session.user)


@router.get("/menu", summary="Menu du rôle")
def menu(session: SessionContext = Depends(get_session)) -> Dict[str, bool]:
    """Views the current role may open."""
    return session.menu()
