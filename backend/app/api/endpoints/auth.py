"""
Authentication API endpoints.

Login, current user, manager-only registration and self-service password
change.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.auth import (
    UserRegister,
    UserLogin,
    PasswordChange,
    LoginResponse,
    CurrentUserResponse,
    RegisterResponse,
    UserListResponse,
    UserResponse,
    UserSummary,
    MessageResponse,
)
from backend.app.core.security import hash_password_async, verify_password_async, dummy_password_hash
from backend.app.core.jwt import create_user_token
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import AuthenticationError, ConflictError
from backend.app.core.guards import Operation, require_permission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


async def find_user_by_email(db: AsyncSession, email: str):
    """Case-insensitive lookup by email."""
    result = await db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Unknown email and wrong password are answered identically (same status,
    same body) so the endpoint does not reveal which accounts exist.
    """
    user = await find_user_by_email(db, credentials.email)

    if user is None:
        # Spend the same bcrypt work as a real check
        await verify_password_async(credentials.password, dummy_password_hash())
        valid = False
    else:
        valid = await verify_password_async(credentials.password, user.password_hash)

    if not valid:
        logger.warning("Failed login attempt for %s", credentials.email.strip().lower())
        raise AuthenticationError("Invalid credentials")

    token = create_user_token(user)
    logger.info("User %s logged in (role=%s)", user.id, user.role.value)

    return LoginResponse(token=token, user=UserSummary.model_validate(user))


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Raises:
        404: If the token's user no longer exists
    """
    user_id = current_user.get("user_id")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return CurrentUserResponse(user=UserResponse.model_validate(user))


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    current_user: dict = Depends(require_permission(Operation.MANAGE_USERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user (managers only).

    Emails are unique regardless of case; the role defaults to operator.
    """
    email = user_data.email.strip().lower()

    if await find_user_by_email(db, email):
        raise ConflictError("Email already registered", details={"email": email})

    new_user = User(
        email=email,
        password_hash=await hash_password_async(user_data.password),
        name=user_data.name.strip(),
        role=user_data.role,
    )

    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        await db.rollback()
        raise ConflictError("Email already registered", details={"email": email})
    await db.refresh(new_user)

    logger.info(
        "User %s (%s) registered by manager %s",
        new_user.id, new_user.role.value, current_user.get("user_id")
    )

    return RegisterResponse(
        message="User created successfully",
        user=UserSummary.model_validate(new_user)
    )


@router.get("/users", response_model=UserListResponse)
async def list_users(
    current_user: dict = Depends(require_permission(Operation.MANAGE_USERS)),
    db: AsyncSession = Depends(get_db)
):
    """List all users, newest first (managers only)."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    users = result.scalars().all()

    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: PasswordChange,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Change the caller's own password.

    The current password must be supplied and correct.
    """
    result = await db.execute(select(User).where(User.id == current_user.get("user_id")))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if not await verify_password_async(data.current_password, user.password_hash):
        logger.warning("Password change for user %s rejected: wrong current password", user.id)
        raise AuthenticationError("Current password is incorrect")

    user.password_hash = await hash_password_async(data.new_password)
    await db.commit()

    logger.info("User %s changed their password", user.id)

    return MessageResponse(message="Password changed successfully")
