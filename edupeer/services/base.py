# edupeer/services/base.py

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import Conflict


class BaseService:
    """
    Shared plumbing for services working on one request-scoped DB session.
    """

    def __init__(self, db_session: Session):
        self.db_session = db_session
        self.logger = logging.getLogger(self.__class__.__name__)

    def commit(self, conflict_message: str = "Conflicting change") -> None:
        """
        Commit, translating a unique-constraint violation into a Conflict.
        """
        try:
            self.db_session.commit()
        except IntegrityError as e:
            self.db_session.rollback()
            self.logger.warning(f"Commit rejected by constraint: {e.orig}")
            raise Conflict(conflict_message) from e
        except Exception as e:
            self.logger.error(f"Commit failed: {e}", exc_info=True)
            self.db_session.rollback()
            raise

    def flush(self, conflict_message: str = "Conflicting change") -> None:
        try:
            self.db_session.flush()
        except IntegrityError as e:
            self.db_session.rollback()
            self.logger.warning(f"Flush rejected by constraint: {e.orig}")
            raise Conflict(conflict_message) from e

    def rollback(self) -> None:
        self.db_session.rollback()
