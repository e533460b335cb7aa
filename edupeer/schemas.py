# edupeer/schemas.py

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Location = Literal['online', 'in-person']
RequestStatus = Literal['pending', 'accepted', 'declined', 'cancelled']
RequestTransition = Literal['accepted', 'declined', 'cancelled']
SessionStatus = Literal['scheduled', 'completed', 'cancelled']

# Largest id a BIGINT primary key can hold.
MAX_ID = 2**63 - 1


def as_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; responses carry the offset."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDateTime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """
    JSON bodies use camelCase; Python code uses snake_case.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Request Schemas ---

class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)
    fullname: str = Field(..., min_length=1, max_length=255)


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdate(CamelModel):
    display_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    avatar: Optional[str] = None
    teach_skills: Optional[List[str]] = Field(None, description="Skills the user can teach.")
    learn_skills: Optional[List[str]] = Field(None, description="Skills the user wants to learn.")


class PairingRequestCreate(CamelModel):
    recipient_id: int = Field(..., gt=0, le=MAX_ID)
    teach_skills: List[str] = Field(default_factory=list, description="Skills the requester offers to teach.")
    learn_skills: List[str] = Field(default_factory=list, description="Skills the requester wants to learn.")
    message: Optional[str] = Field(None, max_length=2000)


class SessionSchedule(CamelModel):
    scheduled_date: datetime
    duration: int = Field(..., gt=0, le=24 * 60, description="Length of the session in minutes.")
    location: Location = 'online'
    notes: Optional[str] = None


class PairingRequestUpdate(CamelModel):
    status: RequestTransition
    session: Optional[SessionSchedule] = Field(
        None, description="Schedule a session in the same call as accepting."
    )


class SessionCreate(SessionSchedule):
    request_id: int = Field(..., gt=0, le=MAX_ID)


class SessionUpdate(CamelModel):
    status: Optional[SessionStatus] = None
    scheduled_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    location: Optional[Location] = None
    notes: Optional[str] = None


class ParticipantUpdate(CamelModel):
    attended: Optional[bool] = None
    feedback: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)


# --- Response Schemas ---

class MessageResponse(CamelModel):
    message: str


class UserSummary(CamelModel):
    id: int
    username: str
    fullname: str
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    teach_skills: List[str] = []
    learn_skills: List[str] = []


class UserOut(UserSummary):
    bio: Optional[str] = None
    created_at: UtcDateTime


class SuggestedMatch(CamelModel):
    user: UserSummary
    you_can_teach_them: List[str]
    they_can_teach_you: List[str]
    match_score: int = Field(..., description="100 plus 10 per skill exchanged.")
    min_skills_exchanged: int
    total_skills_exchanged: int
    tier: str


class PairingRequestOut(CamelModel):
    id: int
    requester_id: int
    recipient_id: int
    teach_skills: List[str]
    learn_skills: List[str]
    status: RequestStatus
    message: Optional[str] = None
    created_at: UtcDateTime
    updated_at: UtcDateTime


class PairingRequestWithUsers(PairingRequestOut):
    requester: UserSummary
    recipient: UserSummary
    session_id: Optional[int] = None


class ParticipantOut(CamelModel):
    id: int
    session_id: int
    user_id: int
    attended: bool
    feedback: Optional[str] = None
    rating: Optional[int] = None
    user: UserSummary


class LearningSessionOut(CamelModel):
    id: int
    request_id: int
    scheduled_date: UtcDateTime
    duration: int
    location: Location
    status: SessionStatus
    notes: Optional[str] = None
    created_at: UtcDateTime
    updated_at: UtcDateTime
    teach_skills: List[str] = []
    learn_skills: List[str] = []
    participants: List[ParticipantOut]


class PairingRequestDetail(PairingRequestWithUsers):
    session: Optional[LearningSessionOut] = None
