"""Candidate/job match model: a stored fit score for one pairing."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from job_ingest.matching.tiers import can_apply, tier

from .base import Base


class CandidateJobMatch(Base):
    __tablename__ = "candidate_job_matches"
    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_candidate_job"),
        CheckConstraint("fit_score >= 0 AND fit_score <= 100", name="ck_fit_score_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    candidate_id: Mapped[int] = mapped_column(Integer, ForeignKey("candidates.id"), nullable=False, index=True)
    job_id: Mapped[int] = mapped_column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    fit_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scored_by: Mapped[str] = mapped_column(String(50), default="")
    matched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    candidate: Mapped["Candidate"] = relationship(back_populates="matches")
    job: Mapped["JobPosting"] = relationship(back_populates="matches")

    @property
    def tier(self) -> str:
        return tier(self.fit_score)

    @property
    def can_apply(self) -> bool:
        return can_apply(self.fit_score)
