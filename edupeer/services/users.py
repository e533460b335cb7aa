# edupeer/services/users.py

from typing import List, Optional, Sequence

from sqlalchemy import select

from .. import config
from ..exceptions import Conflict, NotFound, Unauthenticated, ValidationFailed
from ..models import User
from ..schemas import ProfileUpdate, RegisterRequest
from ..security import hash_password, verify_password
from .base import BaseService


def clean_skill_list(skills: Sequence[str], field: str) -> List[str]:
    """
    Trims each skill name and enforces the per-list rules: no blanks, no
    duplicates, at most MAX_SKILLS_PER_LIST entries. Case is preserved.
    """
    cleaned: List[str] = []
    for raw in skills:
        skill = raw.strip()
        if not skill:
            raise ValidationFailed(f"{field}: skill names cannot be blank")
        if skill in cleaned:
            raise ValidationFailed(f"{field}: duplicate skill '{skill}'")
        cleaned.append(skill)

    if len(cleaned) > config.MAX_SKILLS_PER_LIST:
        raise ValidationFailed(f"{field}: at most {config.MAX_SKILLS_PER_LIST} skills allowed")
    return cleaned


class UserService(BaseService):

    def get_user(self, user_id: int) -> User:
        user = self.db_session.get(User, user_id)
        if user is None:
            raise NotFound("User", user_id)
        return user

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db_session.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()

    def register(self, payload: RegisterRequest) -> User:
        if self.get_by_username(payload.username) is not None:
            raise Conflict("Username already exists")

        user = User(
            username=payload.username,
            password_hash=hash_password(payload.password),
            fullname=payload.fullname,
            display_name=payload.fullname,
            teach_skills=[],
            learn_skills=[],
        )
        self.db_session.add(user)
        # Two registrations racing for one username meet the unique index here.
        self.commit("Username already exists")
        self.logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def authenticate(self, username: str, password: str) -> User:
        user = self.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            raise Unauthenticated("Invalid username or password")
        return user

    def update_profile(self, user_id: int, payload: ProfileUpdate) -> User:
        user = self.get_user(user_id)
        changes = payload.model_dump(exclude_unset=True)

        teach = changes.pop('teach_skills', None)
        learn = changes.pop('learn_skills', None)
        teach_skills = clean_skill_list(teach, 'teachSkills') if teach is not None else list(user.teach_skills or [])
        learn_skills = clean_skill_list(learn, 'learnSkills') if learn is not None else list(user.learn_skills or [])

        both = [skill for skill in teach_skills if skill in learn_skills]
        if both:
            raise ValidationFailed(
                f"A skill cannot be both taught and learned: {', '.join(both)}"
            )

        for field, value in changes.items():
            setattr(user, field, value)
        # Reassign rather than mutate so the JSON columns are marked dirty.
        user.teach_skills = teach_skills
        user.learn_skills = learn_skills

        self.commit()
        self.logger.info(f"Updated profile of user {user.id}")
        return user

    def list_other_users(self, user_id: int) -> List[User]:
        """Every user except ``user_id``, oldest account first."""
        return list(self.db_session.execute(
            select(User).where(User.id != user_id).order_by(User.id)
        ).scalars())

    def browse(
        self,
        user_id: int,
        limit: int,
        offset: int,
        teach_skills: Optional[List[str]] = None,
        learn_skills: Optional[List[str]] = None,
    ) -> List[User]:
        """
        Lists other users, optionally keeping only those who teach (or want to
        learn) at least one of the given skills.
        """
        users = self.list_other_users(user_id)
        if teach_skills:
            wanted = set(teach_skills)
            users = [u for u in users if wanted.intersection(u.teach_skills or [])]
        if learn_skills:
            wanted = set(learn_skills)
            users = [u for u in users if wanted.intersection(u.learn_skills or [])]
        return users[offset:offset + limit]
