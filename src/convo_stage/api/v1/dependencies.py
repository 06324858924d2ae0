"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from convo_stage.core.security import InvalidTokenError, decode_access_token
from convo_stage.db.session import get_db
from convo_stage.models import User
from convo_stage.services.revalidation import PathRevalidator, get_revalidator

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_token_subject(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """Return the user id from the bearer token without loading the user.

    Raises:
        HTTPException: If the token is invalid
    """
    try:
        return decode_access_token(credentials.credentials)
    except InvalidTokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err


def get_current_user(
    subject: Annotated[str, Depends(get_token_subject)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        subject: User id taken from the bearer token
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If the user does not exist
    """
    user = db.get(User, subject)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def require_onboarded_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Reject callers who have not finished onboarding."""
    if not current_user.onboarded:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Onboarding required",
        )
    return current_user


def get_revalidator_dep() -> PathRevalidator:
    """Return the shared path revalidator."""
    return get_revalidator()


TokenSubjectDep = Annotated[str, Depends(get_token_subject)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OnboardedUserDep = Annotated[User, Depends(require_onboarded_user)]
RevalidatorDep = Annotated[PathRevalidator, Depends(get_revalidator_dep)]
