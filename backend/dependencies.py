"""Shared dependencies for authentication."""

import logging
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

import auth
from database import get_db
from utils.validation import get_user_by_email

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Session = Depends(get_db)
):
    """Get the current authenticated user from the JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    email = auth.decode_access_token(token)
    if email is None:
        logger.info("Rejected request with an invalid access token")
        raise credentials_exception
    user = get_user_by_email(db, email=email)
    if user is None or not user.is_active:
        raise credentials_exception
    return user
