"""API Dependencies - Authentication and engine access"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from application.engine import ReservationEngine
from domain.auth import User, UserCredentials
from infrastructure.security import get_password_hash, read_token_subject, verify_password

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Demo callers; each user_id doubles as the holder id of their reservations
DEMO_ACCOUNTS = {
    "admin": {
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "password": "admin123",
        "user_id": "123e4567-e89b-12d3-a456-426614174000",
    },
    "guest": {
        "username": "guest",
        "full_name": "Guest User",
        "email": "guest@example.com",
        "password": "guest123",
        "user_id": "9b2f6c1e-4d0a-4e57-8a43-2f5d7c9e1b20",
    },
}


@lru_cache(maxsize=None)
def _hashed_password(username: str) -> str:
    return get_password_hash(DEMO_ACCOUNTS[username]["password"])


def get_user(username: str) -> Optional[UserCredentials]:
    account = DEMO_ACCOUNTS.get(username)
    if account is None:
        return None
    profile = {key: value for key, value in account.items() if key != "password"}
    return UserCredentials(**profile, hashed_password=_hashed_password(username))


def authenticate_user(username: str, password: str) -> Optional[UserCredentials]:
    user = get_user(username)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    username = read_token_subject(token)
    user = get_user(username) if username else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def get_engine(request: Request) -> ReservationEngine:
    """The engine handle owned by the running application"""
    return request.app.state.engine
