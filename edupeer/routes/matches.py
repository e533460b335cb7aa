# edupeer/routes/matches.py

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..engine import MatchFinder
from ..projections import suggested_match
from ..schemas import SuggestedMatch
from ..security import get_current_user_id
from ..services.users import UserService

router = APIRouter(prefix="/api/matches", tags=["matches"])


@router.get("/suggested", response_model=List[SuggestedMatch])
def suggested_matches(
    limit: int = Query(config.DEFAULT_MATCH_LIMIT, ge=1, le=config.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Returns users with a two-way skill overlap, best match first.
    """
    users = UserService(db)
    me = users.get_user(user_id)
    matches = MatchFinder().find_matches(me, users.list_other_users(user_id), limit=limit, offset=offset)
    return [suggested_match(m) for m in matches]
