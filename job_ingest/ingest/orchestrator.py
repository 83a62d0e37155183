"""Batch ingestion: normalize, dedupe and admit raw rows, then kick off matching."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.orm import Session

from job_ingest.config import IngestConfig
from job_ingest.errors import DuplicateJobError, InvalidBatchError, PersistenceError
from job_ingest.ingest.dedup import admit, is_duplicate, make_dedupe_hash
from job_ingest.ingest.normalizer import normalize_row
from job_ingest.matching.dispatch import MatchingDispatcher
from job_ingest.storage.database import JobStore

logger = logging.getLogger("job_ingest.ingest")

MATCHING_STARTED = "started"
MATCHING_SKIPPED = "skipped"

REASON_NO_NEW_JOBS = "no new jobs inserted"
REASON_SKIP_REQUESTED = "skip_matching requested"
REASON_AUTO_MATCH_DISABLED = "auto matching disabled"
REASON_DISPATCH_FAILED = "matching could not be started"


@dataclass
class MatchingTrigger:
    status: str
    reason: Optional[str] = None
    message: str = ""

    def to_dict(self) -> dict:
        data = {"status": self.status, "message": self.message}
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass
class IngestionBatchResult:
    inserted: int = 0
    duplicates: int = 0
    skipped: int = 0
    total: int = 0
    new_job_ids: list[int] = field(default_factory=list)
    matching: MatchingTrigger = field(default_factory=lambda: MatchingTrigger(MATCHING_SKIPPED))

    def to_dict(self) -> dict:
        return {
            "inserted": self.inserted,
            "duplicates": self.duplicates,
            "skipped": self.skipped,
            "total": self.total,
            "matching": self.matching.to_dict(),
        }


def validate_rows(rows: Any, max_rows: int = 0) -> Sequence:
    if not isinstance(rows, (list, tuple)) or not rows:
        raise InvalidBatchError("No jobs provided")
    if max_rows and len(rows) > max_rows:
        raise InvalidBatchError(f"Too many jobs in one batch: {len(rows)} (limit {max_rows})")
    return rows


def ingest(
    session: Session,
    rows: Any,
    skip_matching: bool = False,
    dispatcher: Optional[MatchingDispatcher] = None,
    config: Optional[IngestConfig] = None,
    source: Optional[str] = None,
) -> IngestionBatchResult:
    """Ingest one batch of raw rows.

    Rows are handled one at a time so a row can be recognised as a duplicate of
    an earlier row in the same batch. Rejected rows count as skipped, collisions
    as duplicates; a row whose insert fails is logged and left out of every count.
    Matching is handed to the dispatcher and never awaited.

    Raises InvalidBatchError for a missing, empty or oversized batch. Anything
    unexpected propagates and no partial result is returned.
    """
    config = config or IngestConfig()
    rows = validate_rows(rows, config.max_rows_per_batch)
    default_source = source or config.default_source
    store = JobStore(session)
    result = IngestionBatchResult(total=len(rows))

    for index, row in enumerate(rows):
        job = normalize_row(row, default_source=default_source)
        if job is None:
            result.skipped += 1
            continue

        dedupe_hash = make_dedupe_hash(job)
        if is_duplicate(store, job, dedupe_hash):
            result.duplicates += 1
            continue

        try:
            posting = admit(store, job, dedupe_hash)
        except DuplicateJobError:
            result.duplicates += 1
            continue
        except PersistenceError as e:
            logger.error("Row %d dropped: %s", index, e)
            continue

        result.inserted += 1
        result.new_job_ids.append(posting.id)

    result.matching = _trigger_matching(result, skip_matching, dispatcher, config)

    logger.info(
        "Batch done: %d rows, %d inserted, %d duplicates, %d skipped, matching %s",
        result.total, result.inserted, result.duplicates, result.skipped, result.matching.status,
    )
    return result


def _trigger_matching(
    result: IngestionBatchResult,
    skip_matching: bool,
    dispatcher: Optional[MatchingDispatcher],
    config: IngestConfig,
) -> MatchingTrigger:
    if result.inserted == 0:
        return MatchingTrigger(
            MATCHING_SKIPPED, REASON_NO_NEW_JOBS, "No new jobs were inserted, nothing to match."
        )
    if skip_matching:
        return MatchingTrigger(
            MATCHING_SKIPPED, REASON_SKIP_REQUESTED, "Matching skipped at the caller's request."
        )
    if not config.auto_match or dispatcher is None:
        return MatchingTrigger(
            MATCHING_SKIPPED, REASON_AUTO_MATCH_DISABLED,
            "Automatic matching after upload is disabled. Run matching manually.",
        )

    try:
        dispatcher.submit(list(result.new_job_ids))
    except Exception as e:
        logger.error("Could not start matching for %d new jobs: %s", result.inserted, e, exc_info=True)
        return MatchingTrigger(MATCHING_SKIPPED, REASON_DISPATCH_FAILED, str(e))

    return MatchingTrigger(
        MATCHING_STARTED,
        message=f"Matching started in the background for {result.inserted} new jobs. Check back later.",
    )
