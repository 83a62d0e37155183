"""Content fingerprinting and duplicate detection for scraped postings."""

import hashlib
import logging

from job_ingest.ingest.normalizer import CanonicalJob
from job_ingest.models import JobPosting
from job_ingest.storage.database import JobStore

logger = logging.getLogger("job_ingest.dedup")

HASH_DELIMITER = "|"
JD_PREFIX_CHARS = 500


def make_dedupe_hash(job: CanonicalJob) -> str:
    """SHA-256 over title, company, location and the start of the clean description.

    Each part is trimmed and lower-cased, so re-scrapes that only differ in case
    or surrounding whitespace (or in url, salary, ids) share a fingerprint.
    """
    jd_prefix = (job.jd_clean or "").strip()[:JD_PREFIX_CHARS]
    parts = [job.title, job.company, job.location, jd_prefix]
    raw = HASH_DELIMITER.join((p or "").strip().lower() for p in parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def is_duplicate(store: JobStore, job: CanonicalJob, dedupe_hash: str | None = None) -> bool:
    """True when the store already holds this content or this (source, source_job_id)."""
    dedupe_hash = dedupe_hash or make_dedupe_hash(job)
    existing_id = store.find_duplicate(dedupe_hash, job.source, job.source_job_id)
    if existing_id is not None:
        logger.debug("Duplicate of job %d: '%s' at %s", existing_id, job.title, job.company)
        return True
    return False


def admit(store: JobStore, job: CanonicalJob, dedupe_hash: str | None = None) -> JobPosting:
    """Persist a posting that missed the duplicate check.

    The check and the insert are separate statements, so a concurrent batch can
    slip in between. The table's unique keys catch that case and surface it as
    DuplicateJobError; other store failures raise PersistenceError.
    """
    return store.insert_job(job, dedupe_hash or make_dedupe_hash(job))
