# edupeer/routes/pairing_requests.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..projections import pairing_request_detail, pairing_request_out
from ..schemas import (MAX_ID, PairingRequestCreate, PairingRequestDetail,
                       PairingRequestUpdate, PairingRequestWithUsers,
                       RequestStatus)
from ..security import get_current_user_id
from ..services.pairing import PairingService

router = APIRouter(prefix="/api/pairing-requests", tags=["pairing-requests"])


@router.post("", response_model=PairingRequestWithUsers, status_code=status.HTTP_201_CREATED)
def create_pairing_request(
    payload: PairingRequestCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return pairing_request_out(PairingService(db).create(user_id, payload))


@router.get("", response_model=List[PairingRequestWithUsers])
def list_pairing_requests(
    status: Optional[RequestStatus] = Query(None),
    type: str = Query('all', description="all, sent or received"),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    requests = PairingService(db).list_for_user(user_id, status=status, request_type=type)
    return [pairing_request_out(r) for r in requests]


@router.patch("/{request_id}", response_model=PairingRequestDetail)
def update_pairing_request(
    payload: PairingRequestUpdate,
    request_id: int = Path(..., le=MAX_ID),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Accept, decline or cancel a pending request. Accepting may include a
    ``session`` schedule, created atomically with the acceptance.
    """
    request, session = PairingService(db).transition(request_id, user_id, payload)
    return pairing_request_detail(request, session)
