# edupeer/services/pairing.py

from typing import List, Optional, Tuple

from sqlalchemy import or_, select, update
from sqlalchemy.orm import selectinload

from ..exceptions import (Conflict, EdupeerError, Forbidden, NotFound,
                          ValidationFailed)
from ..models import LearningSession, PairingRequest, User, utcnow
from ..schemas import PairingRequestCreate, PairingRequestUpdate, RequestStatus
from .base import BaseService
from .learning_sessions import LearningSessionService
from .users import UserService, clean_skill_list

PENDING_EXISTS = "A pending request already exists"
REQUEST_TYPES = ('all', 'sent', 'received')

# Which side of the request may drive each transition.
TRANSITION_ACTORS = {
    'accepted': 'recipient',
    'declined': 'recipient',
    'cancelled': 'requester',
}


class PairingService(BaseService):
    """
    Pairing request lifecycle: pending -> accepted | declined | cancelled.

    Every transition is a conditional UPDATE guarded on ``status = 'pending'``;
    the affected row count decides which of two racing callers wins. Moving a
    request that is no longer pending is refused as Forbidden, the same as a
    transition attempted by the wrong side.
    """

    def get_request(self, request_id: int) -> PairingRequest:
        request = self.db_session.execute(
            select(PairingRequest)
            .where(PairingRequest.id == request_id)
            .options(
                selectinload(PairingRequest.requester),
                selectinload(PairingRequest.recipient),
                selectinload(PairingRequest.session),
            )
        ).scalar_one_or_none()
        if request is None:
            raise NotFound("Pairing request", request_id)
        return request

    def get_pending(self, requester_id: int, recipient_id: int) -> Optional[PairingRequest]:
        return self.db_session.execute(
            select(PairingRequest).where(
                PairingRequest.requester_id == requester_id,
                PairingRequest.recipient_id == recipient_id,
                PairingRequest.status == 'pending',
            )
        ).scalar_one_or_none()

    def create(self, requester_id: int, payload: PairingRequestCreate) -> PairingRequest:
        if payload.recipient_id == requester_id:
            raise ValidationFailed("Cannot send pairing request to yourself")

        users = UserService(self.db_session)
        requester = users.get_user(requester_id)
        recipient = self.db_session.get(User, payload.recipient_id)
        if recipient is None:
            raise NotFound("Recipient", payload.recipient_id)

        if self.get_pending(requester_id, payload.recipient_id) is not None:
            raise Conflict(PENDING_EXISTS)

        teach_skills = clean_skill_list(payload.teach_skills, 'teachSkills')
        learn_skills = clean_skill_list(payload.learn_skills, 'learnSkills')
        if not teach_skills or not learn_skills:
            raise ValidationFailed("A pairing request must name at least one skill to teach and one to learn")

        teachable = set(requester.teach_skills or []) & set(recipient.learn_skills or [])
        unknown = [s for s in teach_skills if s not in teachable]
        if unknown:
            raise ValidationFailed(
                f"teachSkills must be skills you teach and the recipient wants to learn: {', '.join(unknown)}"
            )

        learnable = set(recipient.teach_skills or []) & set(requester.learn_skills or [])
        unknown = [s for s in learn_skills if s not in learnable]
        if unknown:
            raise ValidationFailed(
                f"learnSkills must be skills the recipient teaches and you want to learn: {', '.join(unknown)}"
            )

        request = PairingRequest(
            requester_id=requester_id,
            recipient_id=recipient.id,
            teach_skills=teach_skills,
            learn_skills=learn_skills,
            message=payload.message,
            status='pending',
        )
        self.db_session.add(request)
        # The partial unique index catches a concurrent duplicate submission.
        self.commit(PENDING_EXISTS)
        self.logger.info(f"User {requester_id} sent pairing request {request.id} to user {recipient.id}")
        return self.get_request(request.id)

    def list_for_user(
        self,
        user_id: int,
        status: Optional[RequestStatus] = None,
        request_type: str = 'all',
    ) -> List[PairingRequest]:
        if request_type not in REQUEST_TYPES:
            raise ValidationFailed(f"type must be one of: {', '.join(REQUEST_TYPES)}")

        query = select(PairingRequest).options(
            selectinload(PairingRequest.requester),
            selectinload(PairingRequest.recipient),
            selectinload(PairingRequest.session),
        )
        if request_type == 'sent':
            query = query.where(PairingRequest.requester_id == user_id)
        elif request_type == 'received':
            query = query.where(PairingRequest.recipient_id == user_id)
        else:
            query = query.where(or_(
                PairingRequest.requester_id == user_id,
                PairingRequest.recipient_id == user_id,
            ))
        if status is not None:
            query = query.where(PairingRequest.status == status)

        query = query.order_by(PairingRequest.created_at.desc(), PairingRequest.id.desc())
        return list(self.db_session.execute(query).scalars())

    def _check_actor(self, request: PairingRequest, actor_id: int, new_status: str) -> None:
        side = TRANSITION_ACTORS[new_status]
        if side == 'requester' and request.requester_id != actor_id:
            raise Forbidden("Only the requester can cancel a request")
        if side == 'recipient' and request.recipient_id != actor_id:
            raise Forbidden("Only the recipient can accept or decline a request")

    def transition(
        self, request_id: int, actor_id: int, payload: PairingRequestUpdate
    ) -> Tuple[PairingRequest, Optional[LearningSession]]:
        """
        Moves a pending request to ``payload.status``. When accepting with a
        schedule, the session is created in the same transaction so the pair
        is committed together or not at all.
        """
        new_status = payload.status
        if payload.session is not None and new_status != 'accepted':
            raise ValidationFailed("A session can only be scheduled when accepting a request")

        request = self.get_request(request_id)
        try:
            self._check_actor(request, actor_id, new_status)
        except Forbidden:
            self.logger.warning(f"User {actor_id} may not set request {request_id} to {new_status}")
            raise

        try:
            result = self.db_session.execute(
                update(PairingRequest)
                .where(PairingRequest.id == request_id, PairingRequest.status == 'pending')
                .values(status=new_status, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.rollback()
                current = self.get_request(request_id).status
                raise Forbidden(f"Pairing request is already {current}")

            session = None
            if payload.session is not None:
                session = LearningSessionService(self.db_session).add_for_request(request, payload.session)

            self.commit()
        except EdupeerError:
            self.rollback()
            raise

        self.logger.info(f"User {actor_id} set pairing request {request_id} to {new_status}")
        self.db_session.expire_all()
        request = self.get_request(request_id)
        if session is not None:
            session = LearningSessionService(self.db_session).get_session(session.id)
        return request, session
