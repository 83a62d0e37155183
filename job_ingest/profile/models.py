"""Candidate profile handed to scorers."""

from dataclasses import dataclass, field


@dataclass
class CandidateProfile:
    """The profile fields a scorer may read. Built from a Candidate row."""

    name: str = ""
    location: str = ""
    summary: str = ""
    skills: set[str] = field(default_factory=set)
    job_titles: list[str] = field(default_factory=list)
    experience_years: int = 0
    keywords: list[str] = field(default_factory=list)
    raw_text: str = ""

    @property
    def has_titles(self) -> bool:
        return any(t.strip() for t in self.job_titles)
