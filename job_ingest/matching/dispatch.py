"""Hand-off between ingestion and matching.

Ingestion only knows the MatchingDispatcher interface: submit the ids of
newly admitted jobs and get back whether a run was started.
"""

import logging
import threading
from collections.abc import Iterable
from typing import Optional

from sqlalchemy.orm import sessionmaker

from job_ingest.matching.engine import MAX_MATCHES_PER_CANDIDATE, ProgressCallback, run_matching
from job_ingest.matching.matcher import Scorer

logger = logging.getLogger("job_ingest.matching.dispatch")


class MatchingDispatcher:
    """Starts matching runs for freshly ingested jobs."""

    def submit(self, job_ids: Iterable[int], on_progress: Optional[ProgressCallback] = None) -> bool:
        raise NotImplementedError


class InlineMatchingDispatcher(MatchingDispatcher):
    """Runs matching synchronously in the caller (CLI use)."""

    def __init__(
        self,
        session_factory: sessionmaker,
        scorer: Optional[Scorer] = None,
        max_matches_per_candidate: int = MAX_MATCHES_PER_CANDIDATE,
    ):
        self.session_factory = session_factory
        self.scorer = scorer
        self.max_matches_per_candidate = max_matches_per_candidate

    def submit(self, job_ids: Iterable[int], on_progress: Optional[ProgressCallback] = None) -> bool:
        run_matching(
            self.session_factory,
            scorer=self.scorer,
            job_ids=list(job_ids),
            on_progress=on_progress,
            trigger="ingest",
            max_matches_per_candidate=self.max_matches_per_candidate,
        )
        return True


class ThreadMatchingDispatcher(InlineMatchingDispatcher):
    """Runs each submission on its own daemon thread; the caller never waits for it."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()

    def submit(self, job_ids: Iterable[int], on_progress: Optional[ProgressCallback] = None) -> bool:
        ids = list(job_ids)
        thread = threading.Thread(
            target=self._run_detached,
            args=(ids, on_progress),
            name=f"matching-{len(ids)}-jobs",
            daemon=True,
        )
        thread.start()
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        logger.info("Background matching started for %d new jobs", len(ids))
        return True

    def _run_detached(self, job_ids: list[int], on_progress: Optional[ProgressCallback]) -> None:
        try:
            super().submit(job_ids, on_progress)
        except Exception as e:
            logger.error("Background matching crashed: %s", e, exc_info=True)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for runs started so far (shutdown and tests)."""
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)
