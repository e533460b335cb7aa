# edupeer/routes/users.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..projections import user_out, user_summary
from ..schemas import (MAX_ID, LoginRequest, MessageResponse, ProfileUpdate,
                       RegisterRequest, UserOut, UserSummary)
from ..security import get_current_user_id, login_user, logout_user
from ..services.users import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


def _split(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [part.strip() for part in value.split(',') if part.strip()]


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """
    Creates an account and logs the new user in.
    """
    user = UserService(db).register(payload)
    login_user(request, user.id)
    return user_out(user)


@router.post("/login", response_model=UserOut)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = UserService(db).authenticate(payload.username, payload.password)
    login_user(request, user.id)
    return user_out(user)


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request):
    logout_user(request)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserOut)
def me(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return user_out(UserService(db).get_user(user_id))


@router.post("/profile", response_model=UserOut)
def update_profile(
    payload: ProfileUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return user_out(UserService(db).update_profile(user_id, payload))


@router.get("", response_model=List[UserSummary])
def browse_users(
    limit: int = Query(20, ge=1, le=config.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    teach_skills: Optional[str] = Query(None, alias="teachSkills", description="Comma-separated, any-of."),
    learn_skills: Optional[str] = Query(None, alias="learnSkills", description="Comma-separated, any-of."),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    users = UserService(db).browse(
        user_id,
        limit=limit,
        offset=offset,
        teach_skills=_split(teach_skills),
        learn_skills=_split(learn_skills),
    )
    return [user_summary(u) for u in users]


@router.get("/{target_id}", response_model=UserOut)
def get_user(target_id: int = Path(..., le=MAX_ID), db: Session = Depends(get_db)):
    return user_out(UserService(db).get_user(target_id))
