"""Tests for matching runs."""

from datetime import datetime, timedelta, timezone

from conftest import FixedScorer, add_candidate
from job_ingest.config import AppConfig
from job_ingest.ingest.dedup import admit
from job_ingest.ingest.normalizer import CanonicalJob
from job_ingest.matching.engine import execute_run, run_matching, run_scheduled_matching
from job_ingest.models import CandidateJobMatch, HiddenJob, JobPosting, MatchRun
from job_ingest.models.match_run import RUN_FAILED, RUN_OK
from job_ingest.storage.database import JobStore


def add_job(db, title: str, **kwargs) -> JobPosting:
    job = CanonicalJob(source="linkedin", title=title, company=kwargs.pop("company", "Acme"), **kwargs)
    return admit(JobStore(db), job)


def stored_scores(db, candidate_id: int) -> dict[str, int]:
    return {m.job.title: m.fit_score for m in JobStore(db).matches_for_candidate(candidate_id)}


class TestScoringThreshold:
    def test_only_scores_from_fifty_are_stored(self, db, session_factory, candidate):
        add_job(db, "Low")
        add_job(db, "Edge")
        add_job(db, "High")
        scorer = FixedScorer({"Low": 49, "Edge": 50, "High": 90})

        run_matching(session_factory, scorer=scorer)

        db.expire_all()
        assert stored_scores(db, candidate.id) == {"Edge": 50, "High": 90}

    def test_scored_by_and_tier_recorded(self, db, session_factory, candidate):
        add_job(db, "High")
        run_matching(session_factory, scorer=FixedScorer({"High": 80}))
        match = db.query(CandidateJobMatch).one()
        assert match.scored_by == "fixed"
        assert match.tier == "caution"
        assert match.can_apply

    def test_scores_are_clamped(self, db, session_factory, candidate):
        add_job(db, "Overflow")
        run_matching(session_factory, scorer=FixedScorer({"Overflow": 140}))
        assert db.query(CandidateJobMatch).one().fit_score == 100

    def test_cap_per_candidate(self, db, session_factory, candidate):
        for i in range(5):
            add_job(db, f"Job {i}")
        scorer = FixedScorer({f"Job {i}": 60 + i for i in range(5)})
        run_matching(session_factory, scorer=scorer, max_matches_per_candidate=2)
        assert stored_scores(db, candidate.id) == {"Job 4": 64, "Job 3": 63}


class TestScope:
    def test_job_ids_limit_scope(self, db, session_factory, candidate):
        first = add_job(db, "First")
        add_job(db, "Second")
        run = execute_run(session_factory, scorer=FixedScorer({}, default=70), job_ids=[first.id])
        assert run.jobs_in_scope == 1
        assert stored_scores(db, candidate.id) == {"First": 70}

    def test_empty_job_ids_scores_nothing(self, db, session_factory, candidate):
        add_job(db, "First")
        run = execute_run(session_factory, scorer=FixedScorer({}, default=70), job_ids=[])
        assert run.status == RUN_OK
        assert run.pairs_scored == 0

    def test_inactive_jobs_ignored(self, db, session_factory, candidate):
        job = add_job(db, "Closed")
        job.is_active = False
        db.commit()
        run = execute_run(session_factory, scorer=FixedScorer({}, default=70))
        assert run.jobs_in_scope == 0
        assert db.query(CandidateJobMatch).count() == 0

    def test_only_active_invited_candidates(self, db, session_factory):
        add_candidate(db, email="a@example.com")
        add_candidate(db, email="b@example.com", active=False)
        add_candidate(db, email="c@example.com", invite_accepted_at=None)
        add_job(db, "Role")
        run = execute_run(session_factory, scorer=FixedScorer({}, default=70))
        assert run.candidates_processed == 1
        assert run.matches_upserted == 1

    def test_single_candidate(self, db, session_factory, candidate):
        other = add_candidate(db, email="other@example.com")
        add_job(db, "Role")
        execute_run(session_factory, scorer=FixedScorer({}, default=70), candidate_id=other.id)
        assert stored_scores(db, candidate.id) == {}
        assert stored_scores(db, other.id) == {"Role": 70}

    def test_candidate_without_titles_skipped(self, db, session_factory):
        untitled = add_candidate(db, primary_title="", secondary_titles=[], target_job_titles=[])
        add_job(db, "Role")
        run = execute_run(session_factory, scorer=FixedScorer({}, default=70))
        assert run.candidates_processed == 1
        assert run.pairs_scored == 0
        assert stored_scores(db, untitled.id) == {}

    def test_candidates_counted_when_no_jobs_in_scope(self, db, session_factory, candidate):
        add_candidate(db, email="second@example.com")
        run = execute_run(session_factory, scorer=FixedScorer({}, default=70))
        assert run.jobs_in_scope == 0
        assert run.candidates_processed == 2

    def test_hidden_pairs_not_scored(self, db, session_factory, candidate):
        hidden = add_job(db, "Hidden")
        add_job(db, "Visible")
        db.add(HiddenJob(candidate_id=candidate.id, job_id=hidden.id, reason="not interested"))
        db.commit()

        run = execute_run(session_factory, scorer=FixedScorer({}, default=70))

        assert run.pairs_scored == 1
        assert stored_scores(db, candidate.id) == {"Visible": 70}


class TestFailures:
    def test_pair_failure_is_isolated(self, db, session_factory, candidate):
        add_job(db, "Good")
        add_job(db, "Bad")
        run = execute_run(session_factory, scorer=FixedScorer({"Good": 88}, broken=("Bad",)))
        assert run.status == RUN_OK
        assert run.pairs_scored == 1
        assert run.pairs_failed == 1
        assert stored_scores(db, candidate.id) == {"Good": 88}

    def test_unreadable_profile_skips_only_that_candidate(self, db, session_factory, candidate):
        broken = add_candidate(db, email="broken@example.com", skills=5)
        add_job(db, "Role")

        run = execute_run(session_factory, scorer=FixedScorer({}, default=70))

        assert run.status == RUN_OK
        assert run.candidates_processed == 2
        assert stored_scores(db, broken.id) == {}
        assert stored_scores(db, candidate.id) == {"Role": 70}

    def test_run_failure_is_recorded_not_raised(self, db, session_factory, candidate, monkeypatch):
        add_job(db, "Good")

        def broken_upsert(self, rows):
            raise RuntimeError("connection lost")

        monkeypatch.setattr(JobStore, "upsert_matches", broken_upsert)
        messages = []

        run = execute_run(session_factory, scorer=FixedScorer({}, default=70), on_progress=messages.append)

        assert run.status == RUN_FAILED
        assert "connection lost" in run.error_message
        assert run.ended_at is not None
        assert any("failed" in m.lower() for m in messages)

    def test_run_matching_returns_nothing(self, session_factory):
        assert run_matching(session_factory, scorer=FixedScorer({})) is None

    def test_progress_callback_errors_ignored(self, db, session_factory, candidate):
        add_job(db, "Good")

        def broken_sink(message):
            raise OSError("stream closed")

        run = execute_run(session_factory, scorer=FixedScorer({}, default=70), on_progress=broken_sink)
        assert run.status == RUN_OK


class TestUpsert:
    def test_rerun_updates_in_place(self, db, session_factory, candidate):
        add_job(db, "Role")
        run_matching(session_factory, scorer=FixedScorer({"Role": 60}))
        run_matching(session_factory, scorer=FixedScorer({"Role": 85}))

        db.expire_all()
        matches = db.query(CandidateJobMatch).all()
        assert len(matches) == 1
        assert matches[0].fit_score == 85

    def test_each_run_recorded(self, db, session_factory, candidate):
        add_job(db, "Role")
        run_matching(session_factory, scorer=FixedScorer({}), mode="manual", trigger="user:1")
        run = db.query(MatchRun).one()
        assert run.mode == "manual"
        assert run.trigger == "user:1"
        assert run.status == RUN_OK


class TestScheduledMatching:
    def _old_job(self, db, title):
        job = add_job(db, title)
        job.created_at = datetime.now(timezone.utc) - timedelta(days=3)
        db.commit()
        return job

    def test_recent_jobs_only(self, db, session_factory, candidate):
        self._old_job(db, "Old")
        add_job(db, "New")
        run = run_scheduled_matching(session_factory, AppConfig(), scorer=FixedScorer({}, default=70))
        assert run.mode == "scheduled"
        assert run.jobs_in_scope == 1
        assert stored_scores(db, candidate.id) == {"New": 70}

    def test_full_fallback_when_nothing_recent_matches(self, db, session_factory, candidate):
        self._old_job(db, "Old")
        run = run_scheduled_matching(session_factory, AppConfig(), scorer=FixedScorer({}, default=70))
        assert run.mode == "full_fallback"
        assert run.jobs_in_scope == 1
        assert stored_scores(db, candidate.id) == {"Old": 70}
        assert db.query(MatchRun).count() == 2

    def test_fallback_can_be_disabled(self, db, session_factory, candidate):
        self._old_job(db, "Old")
        config = AppConfig()
        config.matching.full_fallback = False
        run = run_scheduled_matching(session_factory, config, scorer=FixedScorer({}, default=70))
        assert run.mode == "scheduled"
        assert db.query(CandidateJobMatch).count() == 0
