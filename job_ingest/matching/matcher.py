"""Scorer facade: the contract matching relies on and the registry of implementations."""

import logging
from typing import Protocol

from job_ingest.matching.keyword_matcher import KeywordScorer
from job_ingest.matching.title_matcher import TitleScorer
from job_ingest.models import JobPosting
from job_ingest.profile.models import CandidateProfile

logger = logging.getLogger("job_ingest.matching")

DEFAULT_SCORER = "keyword"


class Scorer(Protocol):
    """Deterministic, side-effect-free fit scoring: (profile, job) -> int in [0, 100]."""

    name: str

    def score(self, profile: CandidateProfile, job: JobPosting) -> int: ...


SCORERS: dict[str, type] = {
    KeywordScorer.name: KeywordScorer,
    TitleScorer.name: TitleScorer,
}


def get_scorer(name: str = DEFAULT_SCORER) -> Scorer:
    """Instantiate a registered scorer, falling back to keyword scoring for unknown names."""
    scorer_cls = SCORERS.get(name)
    if scorer_cls is None:
        logger.warning("Unknown scorer '%s' - using %s", name, DEFAULT_SCORER)
        scorer_cls = SCORERS[DEFAULT_SCORER]
    return scorer_cls()


def clamp_score(score: float) -> int:
    """Coerce a scorer's output into an int within [0, 100]."""
    return max(0, min(100, int(round(score))))
