"""
JWT Authentication routes — login, me.

The dashboard has a single operator account configured through
ADMIN_USERNAME / ADMIN_PASSWORD; there is no user table.
"""
import hmac
import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from jose import jwt
from app import config
from app.api.deps import get_current_user

router = APIRouter(prefix="/api/auth", tags=["Authentication"])
logger = logging.getLogger("estimates-auth")


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    username: str
    role: str


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode["exp"] = expire
    return jwt.encode(to_encode, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def _matches(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest):
    username = req.username.strip()
    # Both comparisons always run
    user_ok = _matches(username, config.ADMIN_USERNAME)
    password_ok = _matches(req.password, config.ADMIN_PASSWORD)
    if not (user_ok and password_ok):
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )

    token = create_access_token({"sub": username, "role": "Admin"})
    return TokenResponse(access_token=token, username=username, role="Admin")


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)):
    return {"username": user.get("sub"), "role": user.get("role", "Admin")}
