"""Title/domain compatibility scorer.

Classifies titles into coarse role domains and scores 100 when one of the
candidate's titles is compatible with the job title, 0 otherwise. Domain
compatibility is directional: a software developer title never matches an
analyst posting and vice-versa.
"""

import re

from job_ingest.models import JobPosting
from job_ingest.profile.models import CandidateProfile

# First matching pattern wins, so the more specific data roles come before
# the generic software bucket.
DOMAIN_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("data-engineering", re.compile(r"data\s*(engineer|architect|platform|pipeline|warehouse)|etl\s*(dev|eng)|big\s*data")),
    ("data-science", re.compile(r"data\s*scien|machine\s*learn|\bml\s*(eng|dev|scientist)|\bai\s*(eng|dev)|deep\s*learn|\bnlp\b|computer\s*vision")),
    ("bi", re.compile(r"\bpow(er)?\s*bi\b|\btableau\b|\blooker\b|\bbi\s*(dev|analyst|engineer)|business\s*intel")),
    ("finance-analyst", re.compile(r"financ(ial)?\s*anal|investment\s*anal|credit\s*anal|risk\s*anal")),
    ("data-analytics", re.compile(r"data\s*anal|business\s*anal|operations?\s*anal|product\s*anal|analyst")),
    ("management", re.compile(r"product\s*manag|program\s*manag|project\s*manag|engineering\s*manag|\bscrum\b")),
    ("product", re.compile(r"\bproduct\s*(owner|lead|strategist)\b")),
    ("devops", re.compile(r"devops|\bsre\b|site\s*reliab|cloud\s*(eng|arch)|platform\s*eng")),
    ("fullstack", re.compile(r"full[\s-]*stack")),
    ("mobile", re.compile(r"\bios\s*(dev|eng)|android\s*(dev|eng)|mobile\s*(dev|eng)|react\s*native|flutter")),
    ("frontend", re.compile(r"front[\s-]*end|\bui\s*(dev|eng)|react\s*(dev|eng)|angular\s*(dev|eng)|vue\s*(dev|eng)")),
    ("qa", re.compile(r"\bqa\b|quality\s*assur|test\s*(auto|eng)|\bsdet\b")),
    ("security", re.compile(r"secur|cyber|infosec|penetration")),
    ("design", re.compile(r"\bux\b|\bui\s*design|product\s*design")),
    ("software-engineering", re.compile(r"software|developer|programmer|back[\s-]*end|java(?!script)|python|\.net|c#|ruby|php|\bnode\b|golang|\bgo\b")),
]

COMPATIBLE_DOMAINS: dict[str, set[str]] = {
    "software-engineering": {"software-engineering", "fullstack", "frontend"},
    "frontend": {"frontend", "fullstack", "software-engineering", "mobile"},
    "fullstack": {"fullstack", "frontend", "software-engineering", "mobile"},
    "data-engineering": {"data-engineering", "data-science"},
    "data-science": {"data-science", "data-engineering", "data-analytics"},
    "data-analytics": {"data-analytics", "data-science", "bi"},
    "bi": {"bi", "data-analytics"},
    "devops": {"devops", "software-engineering"},
    "mobile": {"mobile", "frontend", "fullstack", "software-engineering"},
    "qa": {"qa", "software-engineering"},
    "security": {"security", "devops"},
    "management": {"management"},
    "design": {"design", "frontend"},
    "product": {"product"},
    "finance-analyst": {"finance-analyst"},
    "general": {"general"},
}

# Words shared by unrelated roles; overlap on these alone proves nothing
TRIVIAL_TOKENS = {
    "senior", "junior", "lead", "staff", "principal", "associate", "head",
    "director", "manager", "specialist", "consultant", "advisor",
    "engineer", "developer", "programmer", "analyst", "data", "product",
    "business", "technical", "solutions", "digital", "operations", "platform",
    "cloud", "application", "systems", "information", "technology",
}
SHORT_TOKENS = {"qa", "ai", "ml", "bi", "ux", "pm", "vp", "sre"}


def classify_domain(title: str) -> str:
    text = (title or "").lower().strip()
    if not text:
        return "general"
    for domain, pattern in DOMAIN_PATTERNS:
        if pattern.search(text):
            return domain
    return "general"


def title_tokens(title: str) -> set[str]:
    clean = re.sub(r"[^a-z0-9#+.\s-]", " ", (title or "").lower())
    return {t for t in clean.split() if len(t) >= 3 or t in SHORT_TOKENS}


def _meaningful_overlap(a: str, b: str) -> bool:
    shared = title_tokens(a) & title_tokens(b)
    return any(t not in TRIVIAL_TOKENS and len(t) >= 3 for t in shared)


def is_title_match(candidate_titles: list[str], job_title: str) -> bool:
    """Compatible domain plus either the same specific domain or a shared meaningful word."""
    job_domain = classify_domain(job_title)
    for title in candidate_titles:
        domain = classify_domain(title)
        if job_domain not in COMPATIBLE_DOMAINS.get(domain, {domain}):
            continue
        if domain == job_domain and domain != "general":
            return True
        if _meaningful_overlap(title, job_title):
            return True
    return False


class TitleScorer:
    name = "title"

    def score(self, profile: CandidateProfile, job: JobPosting) -> int:
        return 100 if is_title_match(profile.job_titles, job.title) else 0
