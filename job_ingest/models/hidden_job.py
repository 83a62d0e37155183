"""Jobs a candidate chose to hide; matching never scores these pairs."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class HiddenJob(Base):
    __tablename__ = "candidate_hidden_jobs"

    candidate_id: Mapped[int] = mapped_column(Integer, ForeignKey("candidates.id"), primary_key=True)
    job_id: Mapped[int] = mapped_column(Integer, ForeignKey("jobs.id"), primary_key=True)
    reason: Mapped[str] = mapped_column(String(255), default="")
    hidden_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
