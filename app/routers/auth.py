from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field

from app.core.config import get_settings
from app.core.security import SESSION_MAX_AGE, create_session_cookie
from app.deps import SESSION_COOKIE_NAME, get_current_user
from app.models.user import User
from app.routers.users import user_out
from app.services import users as user_service

router = APIRouter()


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def auth_register(body: RegisterRequest):
    """Create an account; it stays unapproved until an admin approves it."""
    user = await user_service.register_user(body.name, body.email, body.password)
    return {"message": "User registered successfully", "id": str(user.id)}


@router.post("/login")
async def auth_login(body: LoginRequest, response: Response):
    """Check credentials and set the httpOnly session cookie."""
    user = await user_service.authenticate(body.email, body.password)
    payload = user_service.session_payload_for_user(user)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=create_session_cookie(payload),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=get_settings().session_cookie_secure,
        samesite="lax",
        path="/",
    )
    return {"user": user_out(user)}


@router.post("/logout")
async def auth_logout(response: Response):
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
    return {"status": "ok"}


@router.get("/me")
async def auth_me(user: User = Depends(get_current_user)):
    """Return current user. Requires session cookie."""
    return user_out(user)
