"""Candidate model: owned by the surrounding system, only read by matching."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from job_ingest.profile.models import CandidateProfile
from job_ingest.utils.text_processing import extract_keywords

from .base import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), default="")
    location: Mapped[str] = mapped_column(String(255), default="")

    primary_title: Mapped[str] = mapped_column(String(255), default="")
    secondary_titles: Mapped[list] = mapped_column(JSON, default=list)
    target_job_titles: Mapped[list] = mapped_column(JSON, default=list)
    skills: Mapped[list] = mapped_column(JSON, default=list)
    years_of_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    summary: Mapped[str] = mapped_column(Text, default="")
    resume_text: Mapped[str] = mapped_column(Text, default="")

    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    invite_accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    matches: Mapped[list["CandidateJobMatch"]] = relationship(
        back_populates="candidate", cascade="all, delete-orphan"
    )

    @property
    def titles(self) -> list[str]:
        """Primary, secondary and target titles, blanks dropped, first occurrence wins."""
        seen: list[str] = []
        for title in [self.primary_title, *(self.secondary_titles or []), *(self.target_job_titles or [])]:
            title = (title or "").strip()
            if title and title not in seen:
                seen.append(title)
        return seen

    def to_profile(self) -> CandidateProfile:
        """Convert DB row to the profile dataclass handed to scorers."""
        text = " ".join(filter(None, [self.summary, self.resume_text]))
        return CandidateProfile(
            name=self.full_name or "",
            location=self.location or "",
            summary=self.summary or "",
            skills={str(s).strip().lower() for s in (self.skills or []) if str(s).strip()},
            job_titles=self.titles,
            experience_years=self.years_of_experience or 0,
            keywords=extract_keywords(text) if text else [],
            raw_text=self.resume_text or "",
        )
