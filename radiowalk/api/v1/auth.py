# radiowalk/api/v1/auth.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from radiowalk.db.session import get_db
from radiowalk.db.models_user import User, now_utc
from radiowalk.auth.security import hash_password, verify_password, create_access_token
from radiowalk.auth.deps import get_current_user
from radiowalk.services.users import allocate_username

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    displayName: str | None = None


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class ChangePasswordIn(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=8)


def _user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "displayName": user.display_name,
    }


@router.post("/register")
async def register(payload: RegisterIn, db: AsyncSession = Depends(get_db)):
    email = payload.email.lower().strip()

    q = await db.execute(select(User).where(User.email == email))
    if q.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=email,
        username=await allocate_username(db, email, payload.displayName),
        password_hash=hash_password(payload.password),
        display_name=payload.displayName,
    )
    db.add(user)
    await db.commit()

    token = create_access_token(user.id)
    return {"user": _user_payload(user), "accessToken": token}


@router.post("/login")
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    email = payload.email.lower().strip()

    q = await db.execute(select(User).where(User.email == email))
    user = q.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user.last_login_at = now_utc()
    await db.commit()

    token = create_access_token(user.id)
    return {"user": _user_payload(user), "accessToken": token}


@router.post("/logout")
async def logout(user=Depends(get_current_user)):
    # JWT is stateless; the client drops the token.
    return {"ok": True}


@router.post("/change-password")
async def change_password(
    payload: ChangePasswordIn,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    if not verify_password(payload.currentPassword, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.password_hash = hash_password(payload.newPassword)
    await db.commit()

    new_token = create_access_token(user.id)
    return {"ok": True, "accessToken": new_token}
