# edupeer/services/learning_sessions.py

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import selectinload

from ..exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from ..models import (LearningSession, PairingRequest, SessionParticipant,
                      to_naive_utc, utcnow)
from ..schemas import (ParticipantUpdate, SessionCreate, SessionSchedule,
                       SessionStatus, SessionUpdate)
from .base import BaseService

DUPLICATE_SESSION = "A session already exists for this request"

# Fields a PATCH may name but never set to null.
REQUIRED_SESSION_FIELDS = ('status', 'scheduled_date', 'duration', 'location')


def future_date(value: datetime) -> datetime:
    """Normalises to naive UTC and rejects anything not after now."""
    value = to_naive_utc(value)
    if value <= utcnow():
        raise ValidationFailed("scheduledDate must be in the future")
    return value


class LearningSessionService(BaseService):

    def _load_options(self):
        return (
            selectinload(LearningSession.participants).selectinload(SessionParticipant.user),
            selectinload(LearningSession.request),
        )

    def get_session(self, session_id: int) -> LearningSession:
        session = self.db_session.execute(
            select(LearningSession)
            .where(LearningSession.id == session_id)
            .options(*self._load_options())
        ).scalar_one_or_none()
        if session is None:
            raise NotFound("Session", session_id)
        return session

    def add_for_request(self, request: PairingRequest, schedule: SessionSchedule) -> LearningSession:
        """
        Stages a session plus one participant row per side of ``request``.
        The caller owns the commit, so this can share a transaction with the
        acceptance that produced the request status.
        """
        session = LearningSession(
            request_id=request.id,
            scheduled_date=future_date(schedule.scheduled_date),
            duration=schedule.duration,
            location=schedule.location,
            notes=schedule.notes,
            status='scheduled',
            participants=[
                SessionParticipant(user_id=request.requester_id),
                SessionParticipant(user_id=request.recipient_id),
            ],
        )
        self.db_session.add(session)
        self.flush(DUPLICATE_SESSION)
        return session

    def create(self, actor_id: int, payload: SessionCreate) -> LearningSession:
        request = self.db_session.get(PairingRequest, payload.request_id)
        if request is None:
            raise NotFound("Pairing request", payload.request_id)
        if not request.involves(actor_id):
            raise Forbidden("Not authorized to create this session")
        if request.status != 'accepted':
            raise ValidationFailed("Cannot create session for non-accepted request")

        existing = self.db_session.execute(
            select(LearningSession.id).where(LearningSession.request_id == request.id)
        ).scalar_one_or_none()
        if existing is not None:
            raise Conflict(DUPLICATE_SESSION)

        session = self.add_for_request(request, payload)
        self.commit(DUPLICATE_SESSION)
        self.logger.info(f"User {actor_id} scheduled session {session.id} for request {request.id}")
        return self.get_session(session.id)

    def list_for_user(self, user_id: int, status: Optional[SessionStatus] = None) -> List[LearningSession]:
        query = (
            select(LearningSession)
            .join(SessionParticipant, SessionParticipant.session_id == LearningSession.id)
            .where(SessionParticipant.user_id == user_id)
            .options(*self._load_options())
            .order_by(LearningSession.scheduled_date, LearningSession.id)
        )

        # Filters match the effective status, where a past scheduled session
        # counts as completed.
        now = utcnow()
        if status == 'scheduled':
            query = query.where(and_(LearningSession.status == 'scheduled', LearningSession.scheduled_date >= now))
        elif status == 'completed':
            query = query.where(or_(
                LearningSession.status == 'completed',
                and_(LearningSession.status == 'scheduled', LearningSession.scheduled_date < now),
            ))
        elif status == 'cancelled':
            query = query.where(LearningSession.status == 'cancelled')

        return list(self.db_session.execute(query).scalars().unique())

    def _require_participant(self, session: LearningSession, user_id: int, action: str) -> SessionParticipant:
        participant = session.participant_for(user_id)
        if participant is None:
            raise Forbidden(f"Not authorized to {action} this session")
        return participant

    def update(self, session_id: int, actor_id: int, payload: SessionUpdate) -> LearningSession:
        session = self.get_session(session_id)
        self._require_participant(session, actor_id, "update")

        if session.status == 'cancelled':
            raise Conflict("Cancelled sessions cannot be modified")

        changes = payload.model_dump(exclude_unset=True)
        for field in REQUIRED_SESSION_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationFailed(f"{field} cannot be null")

        if 'scheduled_date' in changes:
            if changes.get('status') in ('cancelled', 'completed'):
                changes['scheduled_date'] = to_naive_utc(changes['scheduled_date'])
            else:
                changes['scheduled_date'] = future_date(changes['scheduled_date'])

        if not changes:
            return session

        # Conditional write: a concurrent cancel wins over this update.
        result = self.db_session.execute(
            update(LearningSession)
            .where(LearningSession.id == session_id, LearningSession.status != 'cancelled')
            .values(**changes, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.rollback()
            raise Conflict("Cancelled sessions cannot be modified")
        self.commit()

        if changes.get('status') == 'cancelled':
            self.logger.info(f"User {actor_id} cancelled session {session_id}")
        else:
            self.logger.info(f"User {actor_id} updated session {session_id}: {sorted(changes)}")

        self.db_session.expire_all()
        return self.get_session(session_id)

    def annotate(self, session_id: int, actor_id: int, payload: ParticipantUpdate) -> LearningSession:
        """Records the caller's own attendance, feedback or rating."""
        session = self.get_session(session_id)
        participant = self._require_participant(session, actor_id, "annotate")

        changes = payload.model_dump(exclude_unset=True)
        if 'attended' in changes and changes['attended'] is None:
            raise ValidationFailed("attended cannot be null")
        for field, value in changes.items():
            setattr(participant, field, value)

        self.commit()
        return self.get_session(session_id)
