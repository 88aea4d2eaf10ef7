"""
Auth API endpoints - registration, login and two-step password reset
"""
from typing import Optional

import bcrypt
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from todo_app.api.deps import store_call
from todo_app.config import get_settings
from todo_app.database import get_db
from todo_app.models.user import User
from todo_app.services.errors import InvalidInput, InvalidCredentials, Conflict, NotFound
from todo_app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating
BCRYPT_MAX_BYTES = 72


# --- Pydantic Schemas ---

class Credentials(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class UsernameRequest(BaseModel):
    username: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    username: Optional[str] = None
    new_password: Optional[str] = Field(default=None, alias="newPassword")

    class Config:
        populate_by_name = True


# --- Password hashing ---

def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    return bcrypt.hashpw(_secret(password), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Constant-time check of a password against a stored bcrypt hash"""
    try:
        return bcrypt.checkpw(_secret(password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


async def _find_user(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


# --- Endpoints ---

@router.post("/register", status_code=201)
async def register(data: Credentials, db: AsyncSession = Depends(get_db)):
    """Create an account; usernames are unique and case-sensitive"""
    if not data.username or not data.password:
        raise InvalidInput("Username and password are required")

    with store_call("registering user"):
        if await _find_user(db, data.username):
            raise Conflict("User already exists")

        db.add(User(username=data.username, hashed_password=get_password_hash(data.password)))
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            await db.rollback()
            raise Conflict("User already exists")

    logger.info(f"Registered user '{data.username}'")
    return {"message": "User registered successfully", "user": {"username": data.username}}


@router.post("/login")
async def login(data: Credentials, db: AsyncSession = Depends(get_db)):
    if not data.username or not data.password:
        raise InvalidInput("Username and password are required")

    with store_call("logging in"):
        user = await _find_user(db, data.username)

    # Same answer for unknown user and wrong password
    if user is None or not verify_password(data.password, user.hashed_password):
        logger.info(f"Failed login for '{data.username}'")
        raise InvalidCredentials("Invalid username or password")

    return {"message": "Login successful", "user": {"id": user.id, "username": user.username}}


@router.post("/verify-email")
async def verify_username(data: UsernameRequest, db: AsyncSession = Depends(get_db)):
    """First step of password reset: confirm the username exists"""
    if not data.username:
        raise InvalidInput("Username is required")

    with store_call("verifying username"):
        user = await _find_user(db, data.username)

    if user is None:
        raise NotFound("Username not found")

    return {"message": "Username exists", "user": {"id": user.id, "username": user.username}}


@router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    """Second step of password reset: overwrite the password"""
    if not data.username or not data.new_password:
        raise InvalidInput("Username and new password are required")

    with store_call("resetting password"):
        user = await _find_user(db, data.username)
        if user is None:
            raise NotFound("Username not found")

        user.hashed_password = get_password_hash(data.new_password)
        await db.commit()

    logger.info(f"Password reset for '{data.username}'")
    return {"message": "Password reset successfully"}
