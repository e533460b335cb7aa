# edupeer/models.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (JSON, BigInteger, Boolean, Enum, ForeignKey, Index,
                        Integer, String, Text, TIMESTAMP, UniqueConstraint,
                        text)
from sqlalchemy.orm import (Mapped, declarative_base, mapped_column,
                            relationship)

# --- Base Class for Declarative Models ---
Base = declarative_base()

REQUEST_STATUSES = ('pending', 'accepted', 'declined', 'cancelled')
SESSION_STATUSES = ('scheduled', 'completed', 'cancelled')
SESSION_LOCATIONS = ('online', 'in-person')


def utcnow() -> datetime:
    """Naive UTC timestamp; every TIMESTAMP column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# --- Model Definitions ---

class User(Base):
    __tablename__ = 'users'
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    fullname: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(255))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    avatar: Mapped[Optional[str]] = mapped_column(Text)
    teach_skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    learn_skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False, default=utcnow)

    sent_requests: Mapped[List[PairingRequest]] = relationship(foreign_keys="PairingRequest.requester_id", back_populates="requester")
    received_requests: Mapped[List[PairingRequest]] = relationship(foreign_keys="PairingRequest.recipient_id", back_populates="recipient")
    participations: Mapped[List[SessionParticipant]] = relationship(back_populates="user")


class PairingRequest(Base):
    __tablename__ = 'pairing_requests'
    __table_args__ = (
        # Only one pending request per ordered (requester, recipient) pair.
        Index(
            'uq_pairing_requests_pending_pair', 'requester_id', 'recipient_id',
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True)
    requester_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    recipient_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    teach_skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    learn_skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(Enum(*REQUEST_STATUSES, name='request_status'), nullable=False, default='pending')
    message: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    requester: Mapped[User] = relationship(foreign_keys=[requester_id], back_populates="sent_requests")
    recipient: Mapped[User] = relationship(foreign_keys=[recipient_id], back_populates="received_requests")
    session: Mapped[Optional[LearningSession]] = relationship(back_populates="request", uselist=False)

    def involves(self, user_id: int) -> bool:
        return user_id in (self.requester_id, self.recipient_id)


class LearningSession(Base):
    __tablename__ = 'learning_sessions'
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True)
    request_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('pairing_requests.id', ondelete='CASCADE'), unique=True, nullable=False)
    scheduled_date: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    location: Mapped[str] = mapped_column(Enum(*SESSION_LOCATIONS, name='session_location'), nullable=False, default='online')
    status: Mapped[str] = mapped_column(Enum(*SESSION_STATUSES, name='session_status'), nullable=False, default='scheduled')
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    request: Mapped[PairingRequest] = relationship(back_populates="session")
    participants: Mapped[List[SessionParticipant]] = relationship(
        back_populates="session", cascade="all, delete-orphan", order_by="SessionParticipant.id"
    )

    def effective_status(self, now: Optional[datetime] = None) -> str:
        """A scheduled session whose date has passed reads as completed."""
        now = now or utcnow()
        if self.status == 'scheduled' and self.scheduled_date < now:
            return 'completed'
        return self.status

    def participant_for(self, user_id: int) -> Optional[SessionParticipant]:
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None


class SessionParticipant(Base):
    __tablename__ = 'session_participants'
    __table_args__ = (UniqueConstraint('session_id', 'user_id', name='uq_session_participants_user'),)
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True)
    session_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('learning_sessions.id', ondelete='CASCADE'), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    attended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    feedback: Mapped[Optional[str]] = mapped_column(Text)
    rating: Mapped[Optional[int]] = mapped_column(Integer)  # 1-5

    session: Mapped[LearningSession] = relationship(back_populates="participants")
    user: Mapped[User] = relationship(back_populates="participations")
