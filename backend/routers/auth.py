"""Authentication router: register, login, refresh token, logout, current user."""

import logging
from typing import Annotated
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

import models
import schemas
import auth
from database import get_db
from dependencies import get_current_user
from utils.rate_limiter import auth_rate_limiter
from utils.validation import get_user_by_email


logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _issue_tokens(db: Session, user: models.User) -> dict:
    access_token = auth.create_access_token(data={"sub": user.email})

    refresh_token = auth.create_refresh_token()
    db.add(models.RefreshToken(
        user_id=user.id,
        token_hash=auth.hash_token(refresh_token),
        expires_at=auth.get_refresh_token_expiry()
    ))
    db.commit()

    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer"
    }


@router.post("/register", response_model=schemas.Token, dependencies=[Depends(auth_rate_limiter)])
def register_user(user: schemas.UserCreate, db: Session = Depends(get_db)):
    if get_user_by_email(db, email=user.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    db_user = models.User(
        email=user.email,
        hashed_password=auth.get_password_hash(user.password),
        full_name=user.full_name
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    logger.info(f"Registered user {db_user.id}")
    return _issue_tokens(db, db_user)


@router.post("/token", response_model=schemas.Token, dependencies=[Depends(auth_rate_limiter)])
def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Session = Depends(get_db)
):
    user = get_user_by_email(db, form_data.username)
    if not user or not auth.verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _issue_tokens(db, user)


@router.post("/auth/refresh", response_model=schemas.Token)
def refresh_access_token(request: schemas.RefreshTokenRequest, db: Session = Depends(get_db)):
    """Exchange a valid refresh token for a new access token"""
    db_token = db.query(models.RefreshToken).filter(
        models.RefreshToken.token_hash == auth.hash_token(request.refresh_token),
        models.RefreshToken.revoked == False,
        models.RefreshToken.expires_at > datetime.utcnow()
    ).first()
    if not db_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )

    user = db.query(models.User).filter(models.User.id == db_token.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return {
        "access_token": auth.create_access_token(data={"sub": user.email}),
        "token_type": "bearer"
    }


@router.post("/auth/logout")
def logout(request: schemas.RefreshTokenRequest, db: Session = Depends(get_db)):
    """Revoke a refresh token (logout)"""
    db_token = db.query(models.RefreshToken).filter(
        models.RefreshToken.token_hash == auth.hash_token(request.refresh_token)
    ).first()
    if db_token:
        db_token.revoked = True
        db.commit()
    return {"message": "Logged out successfully"}


@router.get("/users/me", response_model=schemas.User)
def read_current_user(current_user: Annotated[models.User, Depends(get_current_user)]):
    return current_user
