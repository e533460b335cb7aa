# edupeer/security.py

import bcrypt
from fastapi import Request

from .exceptions import Unauthenticated

# Key under which the signed session cookie stores the logged-in user.
SESSION_USER_KEY = "user_id"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the store, treat as a mismatch.
        return False


def login_user(request: Request, user_id: int) -> None:
    request.session[SESSION_USER_KEY] = user_id


def logout_user(request: Request) -> None:
    request.session.clear()


async def get_current_user_id(request: Request) -> int:
    """
    Dependency resolving the authenticated user id from the session cookie.
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        raise Unauthenticated()
    return int(user_id)
