"""Match run model: one row per matching run, detached or scheduled."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

RUN_RUNNING = "running"
RUN_OK = "ok"
RUN_FAILED = "failed"


class MatchRun(Base):
    __tablename__ = "match_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=RUN_RUNNING)
    mode: Mapped[str] = mapped_column(String(20), default="incremental")  # incremental, scheduled, full_fallback, manual, full
    trigger: Mapped[str] = mapped_column(String(50), default="")

    jobs_in_scope: Mapped[int] = mapped_column(Integer, default=0)
    candidates_processed: Mapped[int] = mapped_column(Integer, default=0)
    pairs_scored: Mapped[int] = mapped_column(Integer, default=0)
    pairs_failed: Mapped[int] = mapped_column(Integer, default=0)
    matches_upserted: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "status": self.status,
            "mode": self.mode,
            "trigger": self.trigger,
            "jobs_in_scope": self.jobs_in_scope,
            "candidates_processed": self.candidates_processed,
            "pairs_scored": self.pairs_scored,
            "pairs_failed": self.pairs_failed,
            "matches_upserted": self.matches_upserted,
            "error_message": self.error_message,
        }
