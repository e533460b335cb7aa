# edupeer/projections.py

"""
Read-side assembly of API payloads. The ORM models stay free of
presentation concerns; these helpers join in the user summaries and derived
fields the clients expect.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from .engine import MatchResult
from .models import LearningSession, PairingRequest, User, utcnow
from .schemas import (LearningSessionOut, PairingRequestDetail,
                      PairingRequestWithUsers, ParticipantOut,
                      SuggestedMatch, UserOut, UserSummary)


def user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        username=user.username,
        fullname=user.fullname,
        display_name=user.display_name,
        avatar=user.avatar,
        teach_skills=list(user.teach_skills or []),
        learn_skills=list(user.learn_skills or []),
    )


def user_out(user: User) -> UserOut:
    return UserOut(
        **user_summary(user).model_dump(),
        bio=user.bio,
        created_at=user.created_at,
    )


def suggested_match(match: MatchResult) -> SuggestedMatch:
    return SuggestedMatch(
        user=user_summary(match.candidate),
        you_can_teach_them=match.you_can_teach_them,
        they_can_teach_you=match.they_can_teach_you,
        match_score=match.match_score,
        min_skills_exchanged=match.min_skills_exchanged,
        total_skills_exchanged=match.total_skills_exchanged,
        tier=match.tier,
    )


def learning_session_out(session: LearningSession, now: Optional[datetime] = None) -> LearningSessionOut:
    now = now or utcnow()
    return LearningSessionOut(
        id=session.id,
        request_id=session.request_id,
        scheduled_date=session.scheduled_date,
        duration=session.duration,
        location=session.location,
        status=session.effective_status(now),
        notes=session.notes,
        created_at=session.created_at,
        updated_at=session.updated_at,
        teach_skills=list(session.request.teach_skills or []),
        learn_skills=list(session.request.learn_skills or []),
        participants=[
            ParticipantOut(
                id=p.id,
                session_id=p.session_id,
                user_id=p.user_id,
                attended=p.attended,
                feedback=p.feedback,
                rating=p.rating,
                user=user_summary(p.user),
            )
            for p in session.participants
        ],
    )


def learning_sessions_out(sessions: Iterable[LearningSession]) -> List[LearningSessionOut]:
    now = utcnow()
    return [learning_session_out(s, now) for s in sessions]


def pairing_request_out(request: PairingRequest) -> PairingRequestWithUsers:
    return PairingRequestWithUsers(
        id=request.id,
        requester_id=request.requester_id,
        recipient_id=request.recipient_id,
        teach_skills=list(request.teach_skills or []),
        learn_skills=list(request.learn_skills or []),
        status=request.status,
        message=request.message,
        created_at=request.created_at,
        updated_at=request.updated_at,
        requester=user_summary(request.requester),
        recipient=user_summary(request.recipient),
        session_id=request.session.id if request.session is not None else None,
    )


def pairing_request_detail(request: PairingRequest, session: Optional[LearningSession] = None) -> PairingRequestDetail:
    base = pairing_request_out(request)
    return PairingRequestDetail(
        **base.model_dump(),
        session=learning_session_out(session) if session is not None else None,
    )
