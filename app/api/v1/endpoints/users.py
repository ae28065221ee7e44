"""
User endpoints - registration, login, profile, logout (RESTful API).
Challenge: Secure auth, validation, clear status codes; logout really ends the session.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from app.core.dependencies import Credentials, CurrentUserId, Registry, Storage
from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    token_expiry,
    verify_password,
)
from app.db.models.user import User
from app.db.repositories.user_repository import UserRepository
from app.db.session import DbSession
from app.schemas.common import validate_or_raise
from app.schemas.user import LoginRequest, TokenResponse, UserCreate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()

PROFILE_IMAGE_FOLDER = "profiles"

OptionalText = Annotated[str | None, Form()]


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    session: DbSession,
    storage: Storage,
    email: OptionalText = None,
    password: OptionalText = None,
    full_name: OptionalText = None,
    profile_image: Annotated[UploadFile | None, File(alias="profileImage")] = None,
):
    """Create new user from multipart form data, with an optional profile image. Returns user without password."""
    data = validate_or_raise(UserCreate, {"email": email, "password": password, "full_name": full_name})
    repo = UserRepository(session)
    existing = await repo.get_by_email(data.email)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    image_url = ""
    if profile_image is not None and profile_image.filename:
        image_url = await storage.save(profile_image, PROFILE_IMAGE_FOLDER)
    user = User(
        email=data.email.strip().lower(),
        hashed_password=hash_password(data.password),
        full_name=data.full_name,
        profile_image=image_url,
    )
    user = await repo.add(user)
    logger.info("User registered: %s", user.email, extra={"user_id": user.id})
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(session: DbSession, data: LoginRequest):
    """Authenticate and return JWT."""
    repo = UserRepository(session)
    user = await repo.get_by_email(data.email)
    if not user or not verify_password(data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    token = create_access_token(user.id)
    logger.info("User logged in: %s", user.email, extra={"user_id": user.id})
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def profile(session: DbSession, user_id: CurrentUserId):
    user = await UserRepository(session).get_by_id(user_id.value)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(user_id: CurrentUserId, credentials: Credentials, registry: Registry):
    """Revoke the presented token until it would have expired anyway."""
    token = credentials.credentials
    payload = decode_access_token(token) or {}
    await registry.revoke(token, token_expiry(payload))
    logger.info("Token revoked for user %s", user_id, extra={"user_id": user_id.value})
    return {"message": "Logged out successfully"}
