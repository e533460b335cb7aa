# edupeer/routes/sessions.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..projections import learning_session_out, learning_sessions_out
from ..schemas import (MAX_ID, LearningSessionOut, ParticipantUpdate,
                       SessionCreate, SessionStatus, SessionUpdate)
from ..security import get_current_user_id
from ..services.learning_sessions import LearningSessionService

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("", response_model=LearningSessionOut, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: SessionCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return learning_session_out(LearningSessionService(db).create(user_id, payload))


@router.get("", response_model=List[LearningSessionOut])
def list_sessions(
    status: Optional[SessionStatus] = Query(None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return learning_sessions_out(LearningSessionService(db).list_for_user(user_id, status))


@router.patch("/{session_id}", response_model=LearningSessionOut)
def update_session(
    payload: SessionUpdate,
    session_id: int = Path(..., le=MAX_ID),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Reschedule, edit or cancel a session. Any participant may call this."""
    return learning_session_out(LearningSessionService(db).update(session_id, user_id, payload))


@router.patch("/{session_id}/participants/me", response_model=LearningSessionOut)
def annotate_participation(
    payload: ParticipantUpdate,
    session_id: int = Path(..., le=MAX_ID),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return learning_session_out(LearningSessionService(db).annotate(session_id, user_id, payload))
