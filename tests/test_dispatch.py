"""Tests for matching dispatchers."""

import logging

from conftest import FixedScorer
from job_ingest.ingest.dedup import admit
from job_ingest.ingest.normalizer import CanonicalJob
from job_ingest.matching.dispatch import InlineMatchingDispatcher, ThreadMatchingDispatcher
from job_ingest.models import CandidateJobMatch, MatchRun
from job_ingest.storage.database import JobStore


def add_job(db, title):
    return admit(JobStore(db), CanonicalJob(source="linkedin", title=title, company="Acme"))


class TestInlineDispatcher:
    def test_scores_only_submitted_jobs(self, db, session_factory, candidate):
        first = add_job(db, "First")
        add_job(db, "Second")
        dispatcher = InlineMatchingDispatcher(session_factory, scorer=FixedScorer({}, default=65))

        assert dispatcher.submit([first.id]) is True

        match = db.query(CandidateJobMatch).one()
        assert match.job_id == first.id
        assert db.query(MatchRun).one().trigger == "ingest"

    def test_progress_messages(self, db, session_factory, candidate):
        job = add_job(db, "First")
        messages = []
        InlineMatchingDispatcher(session_factory, scorer=FixedScorer({})).submit([job.id], messages.append)
        assert any("Scoring 1 candidates x 1 jobs" in m for m in messages)


class TestThreadDispatcher:
    def test_runs_in_background(self, db, session_factory, candidate):
        job = add_job(db, "First")
        dispatcher = ThreadMatchingDispatcher(session_factory, scorer=FixedScorer({}, default=90))

        assert dispatcher.submit([job.id]) is True
        dispatcher.join(timeout=10)

        db.expire_all()
        assert db.query(CandidateJobMatch).one().fit_score == 90

    def test_crash_is_logged_not_raised(self, session_factory, monkeypatch, caplog):
        def explode(self, job_ids, on_progress=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(InlineMatchingDispatcher, "submit", explode)
        dispatcher = ThreadMatchingDispatcher(session_factory)

        with caplog.at_level(logging.ERROR, logger="job_ingest"):
            assert dispatcher.submit([1]) is True
            dispatcher.join(timeout=10)

        assert any("Background matching crashed" in r.getMessage() for r in caplog.records)
