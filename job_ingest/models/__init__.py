"""ORM models for job ingestion and matching."""

from .base import Base, init_db, make_engine, make_session_factory
from .candidate import Candidate
from .candidate_job_match import CandidateJobMatch
from .hidden_job import HiddenJob
from .job_posting import JobPosting
from .match_run import MatchRun
from .user import User

__all__ = [
    "Base",
    "init_db",
    "make_engine",
    "make_session_factory",
    "User",
    "JobPosting",
    "Candidate",
    "CandidateJobMatch",
    "HiddenJob",
    "MatchRun",
]
