"""Keyword overlap scoring (default scorer, no external calls)."""

import logging

from job_ingest.models import JobPosting
from job_ingest.profile.models import CandidateProfile
from job_ingest.utils.text_processing import (
    extract_keywords,
    extract_skills,
    extract_years_experience,
    title_similarity,
)

logger = logging.getLogger("job_ingest.matching.keyword")

# Scoring weights
WEIGHT_SKILLS = 0.40
WEIGHT_TITLE = 0.30
WEIGHT_KEYWORDS = 0.20
WEIGHT_EXPERIENCE = 0.10


def score_job(profile: CandidateProfile, job: JobPosting) -> tuple[int, str]:
    """Score a job against a profile using keyword overlap.

    Returns (score, reason) where score is an int 0-100.
    """
    reasons = []
    job_text = f"{job.title} {job.description}".lower()

    # 1. Skills the job mentions that the candidate has
    job_skills = extract_skills(job_text) | {s for s in profile.skills if s in job_text}
    if profile.skills and job_skills:
        overlap = profile.skills & job_skills
        skills_score = min(len(overlap) / len(profile.skills), 1.0)
        if overlap:
            reasons.append(f"Skills: {', '.join(sorted(overlap)[:5])}")
    else:
        skills_score = 0.0

    # 2. Best title similarity across the candidate's titles
    title_score = 0.0
    best_title = ""
    for profile_title in profile.job_titles:
        sim = title_similarity(profile_title, job.title)
        if sim > title_score:
            title_score = sim
            best_title = profile_title
    if title_score > 0.3:
        reasons.append(f"Title match: {best_title}")

    # 3. Resume keywords found among the job's top keywords
    job_keywords = set(extract_keywords(job_text, top_n=20))
    profile_keywords = set(profile.keywords[:30])
    if profile_keywords and job_keywords:
        keywords_score = min(len(profile_keywords & job_keywords) / len(profile_keywords), 1.0)
    else:
        keywords_score = 0.0

    # 4. Experience alignment
    experience_score = 0.0
    if profile.experience_years > 0:
        job_years = extract_years_experience(job_text)
        if job_years is None:
            experience_score = 0.5
        else:
            diff = abs(profile.experience_years - job_years)
            if diff <= 2:
                experience_score = 1.0
                reasons.append(f"Experience: {job_years}yr required, has {profile.experience_years}yr")
            elif diff <= 5:
                experience_score = 0.5
            else:
                experience_score = 0.2

    total = (
        WEIGHT_SKILLS * skills_score
        + WEIGHT_TITLE * title_score
        + WEIGHT_KEYWORDS * keywords_score
        + WEIGHT_EXPERIENCE * experience_score
    )

    reason = "; ".join(reasons) if reasons else "Low keyword overlap"
    return round(total * 100), reason


class KeywordScorer:
    name = "keyword"

    def score(self, profile: CandidateProfile, job: JobPosting) -> int:
        score, reason = score_job(profile, job)
        logger.debug("Scored '%s' at %s: %d (%s)", job.title, job.company, score, reason)
        return score
