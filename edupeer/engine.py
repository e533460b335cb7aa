# edupeer/engine.py

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence


@dataclass(frozen=True)
class MatchResult:
    candidate: Any
    you_can_teach_them: List[str]
    they_can_teach_you: List[str]
    match_score: int

    @property
    def min_skills_exchanged(self) -> int:
        return min(len(self.you_can_teach_them), len(self.they_can_teach_you))

    @property
    def total_skills_exchanged(self) -> int:
        return len(self.you_can_teach_them) + len(self.they_can_teach_you)

    @property
    def tier(self) -> str:
        return MatchFinder.tier_for(self.min_skills_exchanged)


class MatchFinder:
    """
    Finds mutual-benefit skill exchanges for one user.

    1.  Candidate Generation: drops the user themselves and anyone with an
        empty teach or learn list.
    2.  Feature Engineering: intersects skill lists in both directions.
    3.  Ranking: keeps only two-way overlaps and orders them by match score.

    Users are duck-typed: anything with ``id``, ``teach_skills`` and
    ``learn_skills`` works. Skill names are compared exactly, case included.
    """
    # --- SCORING ---
    BASE_SCORE = 100       # Floor every mutual match clears
    POINTS_PER_SKILL = 10  # Added per skill exchanged in either direction

    # --- TIERS --- (minimum skills exchanged in the weaker direction)
    TIER_THRESHOLDS = (
        (3, 'excellent'),
        (2, 'strong'),
        (1, 'good'),
    )

    @classmethod
    def score(cls, you_can_teach_them: Sequence[str], they_can_teach_you: Sequence[str]) -> int:
        return cls.BASE_SCORE + cls.POINTS_PER_SKILL * (len(you_can_teach_them) + len(they_can_teach_you))

    @classmethod
    def tier_for(cls, min_skills_exchanged: int) -> str:
        for threshold, name in cls.TIER_THRESHOLDS:
            if min_skills_exchanged >= threshold:
                return name
        return 'none'

    @staticmethod
    def _overlap(ordered: Sequence[str], wanted: Iterable[str]) -> List[str]:
        wanted_set = set(wanted)
        return [skill for skill in dict.fromkeys(ordered) if skill in wanted_set]

    def match(self, user: Any, candidate: Any):
        """Returns a MatchResult, or None when the benefit is not mutual."""
        if candidate.id == user.id:
            return None
        if not (user.teach_skills and user.learn_skills):
            return None
        if not (candidate.teach_skills and candidate.learn_skills):
            return None

        you_can_teach_them = self._overlap(user.teach_skills, candidate.learn_skills)
        they_can_teach_you = self._overlap(candidate.teach_skills, user.learn_skills)

        # Strict AND: a one-directional overlap is not a match.
        if not (you_can_teach_them and they_can_teach_you):
            return None

        return MatchResult(
            candidate=candidate,
            you_can_teach_them=you_can_teach_them,
            they_can_teach_you=they_can_teach_you,
            match_score=self.score(you_can_teach_them, they_can_teach_you),
        )

    def find_matches(self, user: Any, candidates: Iterable[Any], limit: int, offset: int = 0) -> List[MatchResult]:
        if not (user.teach_skills and user.learn_skills):
            logging.info(f"User {user.id} has an empty skill list; no matches possible.")
            return []

        matches = []
        for candidate in candidates:
            result = self.match(user, candidate)
            if result is not None:
                matches.append(result)

        # Stable sort, so equal scores keep candidate pool order.
        matches.sort(key=lambda m: m.match_score, reverse=True)
        logging.info(f"Found {len(matches)} mutual matches for user {user.id}.")

        return matches[offset:offset + limit]
