"""Shared fixtures: in-memory database, sample candidates, recording dispatcher."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool

from job_ingest.matching.dispatch import MatchingDispatcher
from job_ingest.models import Candidate, init_db, make_engine, make_session_factory


class RecordingDispatcher(MatchingDispatcher):
    """Remembers submissions instead of running matching."""

    def __init__(self, fail: bool = False):
        self.submissions: list[list[int]] = []
        self.fail = fail

    def submit(self, job_ids, on_progress=None) -> bool:
        if self.fail:
            raise RuntimeError("queue unavailable")
        self.submissions.append(list(job_ids))
        return True


class FixedScorer:
    """Scores by job title lookup; titles listed in `broken` raise."""

    name = "fixed"

    def __init__(self, scores: dict[str, int], default: int = 0, broken: tuple[str, ...] = ()):
        self.scores = scores
        self.default = default
        self.broken = broken

    def score(self, profile, job) -> int:
        if job.title in self.broken:
            raise ValueError(f"cannot score {job.title}")
        return self.scores.get(job.title, self.default)


@pytest.fixture
def engine():
    # One shared connection so every session sees the same in-memory database
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


def add_candidate(db, **kwargs) -> Candidate:
    defaults = dict(
        full_name="Ada Lovelace",
        email="ada@example.com",
        primary_title="Software Engineer",
        secondary_titles=["Backend Engineer"],
        skills=["Python", "Docker", "AWS"],
        years_of_experience=5,
        summary="Backend engineer building Python services on AWS.",
        active=True,
        invite_accepted_at=datetime.now(timezone.utc),
    )
    defaults.update(kwargs)
    candidate = Candidate(**defaults)
    db.add(candidate)
    db.commit()
    return candidate


@pytest.fixture
def candidate(db):
    return add_candidate(db)


def job_row(**kwargs) -> dict:
    row = {
        "title": "Software Engineer",
        "companyName": "Acme Inc",
        "location": "San Francisco, CA",
        "description": "Build Python services with Docker and AWS.",
        "url": "https://example.com/jobs/1",
    }
    row.update(kwargs)
    return row
