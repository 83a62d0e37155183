"""Store gateway: the queries ingestion and matching issue against the database."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from job_ingest.errors import DuplicateJobError, PersistenceError
from job_ingest.ingest.normalizer import CanonicalJob
from job_ingest.models import Candidate, CandidateJobMatch, HiddenJob, JobPosting, MatchRun
from job_ingest.models.match_run import RUN_FAILED, RUN_OK, RUN_RUNNING

logger = logging.getLogger("job_ingest.storage")

# 5 bound columns per row; stays under the 999-parameter limit of older SQLite builds
UPSERT_CHUNK = 150


class JobStore:
    """Wraps one SQLAlchemy session. Every write commits on its own; no multi-statement transactions."""

    def __init__(self, session: Session):
        self.session = session

    # ── Jobs ──────────────────────────────────────────────────────────────

    def find_duplicate(
        self, dedupe_hash: str, source: str, source_job_id: Optional[str] = None
    ) -> int | None:
        """Id of a posting with the same fingerprint or the same (source, source_job_id), if any."""
        condition = JobPosting.dedupe_hash == dedupe_hash
        if source_job_id:
            condition = or_(
                condition,
                and_(JobPosting.source == source, JobPosting.source_job_id == source_job_id),
            )
        row = self.session.query(JobPosting.id).filter(condition).limit(1).first()
        return row[0] if row else None

    def insert_job(self, job: CanonicalJob, dedupe_hash: str) -> JobPosting:
        """Persist a new active posting.

        Raises DuplicateJobError when a uniqueness constraint rejects the row and
        PersistenceError for any other database failure.
        """
        posting = JobPosting(
            **job.to_dict(),
            dedupe_hash=dedupe_hash,
            is_active=True,
            scraped_at=datetime.now(timezone.utc),
        )
        self.session.add(posting)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateJobError(f"'{job.title}' at {job.company} already stored") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Insert failed for '{job.title}' at {job.company}: {e}") from e
        return posting

    def jobs_in_scope(
        self, job_ids: Optional[Iterable[int]] = None, since: Optional[datetime] = None
    ) -> list[JobPosting]:
        """Active jobs, optionally limited to given ids and/or to jobs created since a time."""
        query = self.session.query(JobPosting).filter(JobPosting.is_active.is_(True))
        if job_ids is not None:
            ids = list(job_ids)
            if not ids:
                return []
            query = query.filter(JobPosting.id.in_(ids))
        if since is not None:
            query = query.filter(JobPosting.created_at >= since)
        return query.order_by(JobPosting.id).all()

    # ── Candidates ────────────────────────────────────────────────────────

    def active_candidates(self, candidate_id: Optional[int] = None) -> list[Candidate]:
        """Candidates that are active and have accepted their invite."""
        query = self.session.query(Candidate).filter(
            Candidate.active.is_(True),
            Candidate.invite_accepted_at.isnot(None),
        )
        if candidate_id is not None:
            query = query.filter(Candidate.id == candidate_id)
        return query.order_by(Candidate.id).all()

    def hidden_pairs(self, candidate_ids: list[int]) -> set[tuple[int, int]]:
        if not candidate_ids:
            return set()
        rows = self.session.query(HiddenJob.candidate_id, HiddenJob.job_id).filter(
            HiddenJob.candidate_id.in_(candidate_ids)
        ).all()
        return {(row.candidate_id, row.job_id) for row in rows}

    # ── Matches ───────────────────────────────────────────────────────────

    def upsert_matches(self, rows: list[dict]) -> int:
        """Insert or refresh matches keyed on (candidate_id, job_id). Returns rows written."""
        if not rows:
            return 0

        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            return self._merge_matches(rows)

        for start in range(0, len(rows), UPSERT_CHUNK):
            stmt = insert(CandidateJobMatch).values(rows[start:start + UPSERT_CHUNK])
            stmt = stmt.on_conflict_do_update(
                index_elements=["candidate_id", "job_id"],
                set_={
                    "fit_score": stmt.excluded.fit_score,
                    "scored_by": stmt.excluded.scored_by,
                    "matched_at": stmt.excluded.matched_at,
                },
            )
            self.session.execute(stmt)
        self.session.commit()
        return len(rows)

    def _merge_matches(self, rows: list[dict]) -> int:
        for row in rows:
            existing = self.session.query(CandidateJobMatch).filter(
                CandidateJobMatch.candidate_id == row["candidate_id"],
                CandidateJobMatch.job_id == row["job_id"],
            ).first()
            if existing:
                existing.fit_score = row["fit_score"]
                existing.scored_by = row["scored_by"]
                existing.matched_at = row["matched_at"]
            else:
                self.session.add(CandidateJobMatch(**row))
        self.session.commit()
        return len(rows)

    def matches_for_candidate(self, candidate_id: int) -> list[CandidateJobMatch]:
        return self.session.query(CandidateJobMatch).filter(
            CandidateJobMatch.candidate_id == candidate_id
        ).order_by(CandidateJobMatch.fit_score.desc()).all()

    # ── Match runs ────────────────────────────────────────────────────────

    def start_run(self, mode: str, trigger: str = "") -> MatchRun:
        run = MatchRun(mode=mode, trigger=trigger, status=RUN_RUNNING)
        self.session.add(run)
        self.session.commit()
        return run

    def finish_run(self, run: MatchRun, **counts: int) -> MatchRun:
        for name, value in counts.items():
            setattr(run, name, value)
        run.status = RUN_OK
        run.ended_at = datetime.now(timezone.utc)
        self.session.commit()
        return run

    def fail_run(self, run: MatchRun, error_message: str, **counts: int) -> MatchRun:
        for name, value in counts.items():
            setattr(run, name, value)
        run.status = RUN_FAILED
        run.error_message = error_message[:1000]
        run.ended_at = datetime.now(timezone.utc)
        self.session.commit()
        return run

    def recent_runs(self, limit: int = 20) -> list[MatchRun]:
        return self.session.query(MatchRun).order_by(MatchRun.id.desc()).limit(limit).all()

    # ── Stats ─────────────────────────────────────────────────────────────

    def get_stats(self) -> dict:
        """Counts for the admin overview and the CLI."""
        stats = {}

        stats["total_jobs"] = self.session.query(func.count(JobPosting.id)).scalar() or 0
        stats["active_jobs"] = self.session.query(func.count(JobPosting.id)).filter(
            JobPosting.is_active.is_(True)
        ).scalar() or 0
        stats["total_matches"] = self.session.query(func.count(CandidateJobMatch.id)).scalar() or 0
        stats["total_runs"] = self.session.query(func.count(MatchRun.id)).scalar() or 0

        rows = self.session.query(JobPosting.source, func.count(JobPosting.id)).group_by(
            JobPosting.source
        ).all()
        stats["by_source"] = {source: count for source, count in rows}

        last = self.session.query(MatchRun).order_by(MatchRun.id.desc()).first()
        if last:
            stats["last_run"] = last.to_dict()

        return stats
