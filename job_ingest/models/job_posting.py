"""Job posting model: one row per admitted scraped listing."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class JobPosting(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        # NULL source_job_id values never collide, so id-less rows rely on dedupe_hash alone
        UniqueConstraint("source", "source_job_id", name="uq_job_source_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source: Mapped[str] = mapped_column(Text, nullable=False, default="manual", index=True)
    source_job_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    company: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    jd_raw: Mapped[str | None] = mapped_column(Text, nullable=True)
    jd_clean: Mapped[str | None] = mapped_column(Text, nullable=True)
    salary_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    salary_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    job_type: Mapped[str | None] = mapped_column(Text, nullable=True)  # unknown types pass through as-is
    remote_type: Mapped[str | None] = mapped_column(Text, nullable=True)

    dedupe_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)  # SHA-256 hex
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    scraped_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )

    matches: Mapped[list["CandidateJobMatch"]] = relationship(
        back_populates="job", cascade="all, delete-orphan"
    )

    @property
    def description(self) -> str:
        return self.jd_clean or self.jd_raw or ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "source_job_id": self.source_job_id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "url": self.url,
            "salary_min": self.salary_min,
            "salary_max": self.salary_max,
            "job_type": self.job_type,
            "remote_type": self.remote_type,
            "dedupe_hash": self.dedupe_hash,
            "is_active": self.is_active,
            "scraped_at": self.scraped_at.isoformat() if self.scraped_at else None,
        }
