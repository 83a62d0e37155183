"""Matching runs: score active candidates against a scope of jobs and store qualifying matches.

A run owns its own session and is meant to execute detached from whatever
triggered it. It never raises: the outcome is visible through the log, the
on_progress sink, the stored matches, and the MatchRun row it records.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from job_ingest.config import AppConfig
from job_ingest.errors import MatchingError
from job_ingest.matching.matcher import Scorer, clamp_score, get_scorer
from job_ingest.matching.tiers import should_store
from job_ingest.models import MatchRun
from job_ingest.models.match_run import RUN_OK
from job_ingest.storage.database import JobStore

logger = logging.getLogger("job_ingest.matching.engine")

MAX_MATCHES_PER_CANDIDATE = 500

ProgressCallback = Callable[[str], None]


def run_matching(
    session_factory: sessionmaker,
    scorer: Optional[Scorer] = None,
    job_ids: Optional[Iterable[int]] = None,
    candidate_id: Optional[int] = None,
    jobs_since: Optional[datetime] = None,
    on_progress: Optional[ProgressCallback] = None,
    mode: str = "incremental",
    trigger: str = "",
    max_matches_per_candidate: int = MAX_MATCHES_PER_CANDIDATE,
) -> None:
    """Score every active candidate against the jobs in scope.

    With no job_ids and no jobs_since the scope is every active job.
    """
    execute_run(
        session_factory,
        scorer=scorer,
        job_ids=job_ids,
        candidate_id=candidate_id,
        jobs_since=jobs_since,
        on_progress=on_progress,
        mode=mode,
        trigger=trigger,
        max_matches_per_candidate=max_matches_per_candidate,
    )


def execute_run(
    session_factory: sessionmaker,
    scorer: Optional[Scorer] = None,
    job_ids: Optional[Iterable[int]] = None,
    candidate_id: Optional[int] = None,
    jobs_since: Optional[datetime] = None,
    on_progress: Optional[ProgressCallback] = None,
    mode: str = "incremental",
    trigger: str = "",
    max_matches_per_candidate: int = MAX_MATCHES_PER_CANDIDATE,
) -> MatchRun | None:
    """Same as run_matching but hands back the recorded MatchRun (None if it could not be recorded)."""
    scorer = scorer or get_scorer()

    def log(message: str) -> None:
        logger.info("[MATCH] %s", message)
        if on_progress is not None:
            try:
                on_progress(message)
            except Exception as e:
                logger.warning("[MATCH] Progress callback failed: %s", e)

    db = session_factory()
    store = JobStore(db)
    run = None
    counts = _empty_counts()
    try:
        run = store.start_run(mode=mode, trigger=trigger)
        _score_scope(
            store, scorer, counts, log,
            job_ids=None if job_ids is None else list(job_ids),
            candidate_id=candidate_id,
            jobs_since=jobs_since,
            max_matches=max_matches_per_candidate,
        )
        store.finish_run(run, **counts)
        log(
            f"Run {run.id} done: {counts['candidates_processed']} candidates, "
            f"{counts['pairs_scored']} pairs scored, {counts['pairs_failed']} failed, "
            f"{counts['matches_upserted']} matches stored."
        )
    except Exception as e:
        log(f"Matching run failed: {e}")
        logger.error("[MATCH] Run aborted", exc_info=True)
        db.rollback()
        if run is not None:
            try:
                store.fail_run(run, str(e), **counts)
            except SQLAlchemyError as record_error:
                logger.error("[MATCH] Could not record failed run %s: %s", run.id, record_error)
    finally:
        db.close()
    return run


def _empty_counts() -> dict[str, int]:
    return {
        "jobs_in_scope": 0,
        "candidates_processed": 0,
        "pairs_scored": 0,
        "pairs_failed": 0,
        "matches_upserted": 0,
    }


def _score_scope(
    store: JobStore,
    scorer: Scorer,
    counts: dict[str, int],
    log: ProgressCallback,
    job_ids: Optional[list[int]],
    candidate_id: Optional[int],
    jobs_since: Optional[datetime],
    max_matches: int,
) -> None:
    try:
        candidates = store.active_candidates(candidate_id)
        jobs = store.jobs_in_scope(job_ids=job_ids, since=jobs_since) if candidates else []
        hidden = store.hidden_pairs([c.id for c in candidates])
    except SQLAlchemyError as e:
        raise MatchingError(f"Error fetching candidates or jobs: {e}") from e

    if not candidates:
        log("No active candidates.")
        return
    counts["candidates_processed"] = len(candidates)
    counts["jobs_in_scope"] = len(jobs)
    if not jobs:
        log("No active jobs in scope.")
        return

    log(f"Scoring {len(candidates)} candidates x {len(jobs)} jobs with {scorer.name} scorer.")
    now = datetime.now(timezone.utc)

    for candidate in candidates:
        try:
            profile = candidate.to_profile()
        except Exception as e:
            logger.warning("[MATCH] Candidate %d has an unreadable profile: %s", candidate.id, e)
            log(f"{candidate.full_name}: skipped, profile could not be read.")
            continue
        if not profile.has_titles:
            log(f"{candidate.full_name}: skipped, no titles set.")
            continue

        rows = []
        for job in jobs:
            if (candidate.id, job.id) in hidden:
                continue
            try:
                score = clamp_score(scorer.score(profile, job))
            except Exception as e:
                counts["pairs_failed"] += 1
                logger.warning(
                    "[MATCH] Scoring failed for candidate %d / job %d: %s", candidate.id, job.id, e
                )
                continue
            counts["pairs_scored"] += 1
            if should_store(score):
                rows.append({
                    "candidate_id": candidate.id,
                    "job_id": job.id,
                    "fit_score": score,
                    "scored_by": scorer.name,
                    "matched_at": now,
                })

        if not rows:
            log(f"{candidate.full_name}: 0 matches.")
            continue

        rows.sort(key=lambda r: r["fit_score"], reverse=True)
        rows = rows[:max_matches]
        try:
            counts["matches_upserted"] += store.upsert_matches(rows)
        except SQLAlchemyError as e:
            raise MatchingError(f"Save error for {candidate.full_name}: {e}") from e
        log(f"{candidate.full_name}: {len(rows)} matches stored.")


def run_scheduled_matching(
    session_factory: sessionmaker,
    config: AppConfig,
    scorer: Optional[Scorer] = None,
    on_progress: Optional[ProgressCallback] = None,
    trigger: str = "scheduler",
) -> MatchRun | None:
    """Incremental run over jobs created within the schedule interval.

    When that stores nothing and full_fallback is on, rescore every active job.
    Returns the last run recorded.
    """
    scorer = scorer or get_scorer(config.matching.scorer)
    since = datetime.now(timezone.utc) - timedelta(hours=config.matching.interval_hours)
    run = execute_run(
        session_factory,
        scorer=scorer,
        jobs_since=since,
        on_progress=on_progress,
        mode="scheduled",
        trigger=trigger,
        max_matches_per_candidate=config.matching.max_matches_per_candidate,
    )

    if (
        config.matching.full_fallback
        and run is not None
        and run.status == RUN_OK
        and run.matches_upserted == 0
        and run.candidates_processed > 0
    ):
        logger.info("[MATCH] Nothing matched in the last %dh - running full match", config.matching.interval_hours)
        run = execute_run(
            session_factory,
            scorer=scorer,
            on_progress=on_progress,
            mode="full_fallback",
            trigger=trigger,
            max_matches_per_candidate=config.matching.max_matches_per_candidate,
        )
    return run
