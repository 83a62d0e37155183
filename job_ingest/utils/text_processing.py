"""Text helpers shared by normalization and scoring."""

import re
from collections import Counter

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")

# Skills recognised in job descriptions even when the candidate did not list them
TECH_SKILLS = {
    "python", "java", "javascript", "typescript", "c++", "c#", "go", "golang",
    "rust", "ruby", "php", "swift", "kotlin", "scala", "r", "sql", "bash",
    "react", "angular", "vue", "node.js", "django", "flask", "fastapi", "spring",
    ".net", "rails", "aws", "azure", "gcp", "docker", "kubernetes", "terraform",
    "linux", "ci/cd", "machine learning", "deep learning", "nlp", "pytorch",
    "tensorflow", "pandas", "spark", "airflow", "kafka", "snowflake", "dbt",
    "tableau", "power bi", "postgresql", "mysql", "mongodb", "redis",
    "elasticsearch", "graphql", "microservices", "rest", "git",
}

STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "is", "are", "was", "were", "be", "been",
    "have", "has", "had", "do", "does", "will", "would", "could", "should",
    "may", "can", "this", "that", "these", "those", "you", "we", "they", "our",
    "your", "their", "its", "not", "no", "so", "if", "than", "very", "just",
    "about", "all", "also", "as", "into", "over", "each", "more", "most",
    "other", "some", "such", "only", "when", "where", "how", "what", "which",
    "who", "work", "experience", "team", "company", "role", "ability", "years",
}

_SENIORITY_PREFIXES = ["senior ", "sr. ", "sr ", "junior ", "jr. ", "jr ", "lead ", "staff ", "principal "]
_LEVEL_SUFFIXES = [" i", " ii", " iii", " iv", " v"]


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def strip_html(html: str) -> str:
    """Reduce an HTML fragment to plain text with single spaces between blocks."""
    soup = BeautifulSoup(html, "lxml")
    return collapse_whitespace(soup.get_text(" "))


def extract_skills(text: str) -> set[str]:
    """Extract recognized tech skills from text."""
    text_lower = text.lower()
    found = set()

    for skill in TECH_SKILLS:
        # Short names like "r" and "go" only count as whole words
        if len(skill) <= 2:
            if re.search(rf"\b{re.escape(skill)}\b", text_lower):
                found.add(skill)
        elif skill in text_lower:
            found.add(skill)

    return found


def extract_keywords(text: str, top_n: int = 30) -> list[str]:
    """Most frequent non-stop-words in text."""
    words = re.findall(r"\b[a-z][a-z+#.]{1,30}\b", text.lower())
    counts = Counter(w for w in words if w not in STOP_WORDS)
    return [word for word, _ in counts.most_common(top_n)]


def normalize_title(title: str) -> str:
    """Lower-case a job title and drop seniority prefixes and level suffixes."""
    title = title.lower().strip()
    for prefix in _SENIORITY_PREFIXES:
        title = title.removeprefix(prefix)
    for suffix in _LEVEL_SUFFIXES:
        if title.endswith(suffix):
            title = title[: -len(suffix)]
    return title.strip()


def title_similarity(title1: str, title2: str) -> float:
    """Word overlap between two normalized titles (0.0-1.0)."""
    t1 = normalize_title(title1)
    t2 = normalize_title(title2)

    if t1 == t2:
        return 1.0 if t1 else 0.0

    words1 = set(t1.split())
    words2 = set(t2.split())

    if not words1 or not words2:
        return 0.0

    return len(words1 & words2) / max(len(words1), len(words2))


def extract_years_experience(text: str) -> int | None:
    """Try to extract years of experience from text (e.g., '5+ years')."""
    patterns = [
        r"(\d+)\+?\s*(?:years?|yrs?)\s*(?:of\s*)?(?:experience|exp)",
        r"(?:experience|exp)\s*(?:of\s*)?(\d+)\+?\s*(?:years?|yrs?)",
        r"(\d+)\+?\s*(?:years?|yrs?)",
    ]
    for pattern in patterns:
        match = re.search(pattern, text.lower())
        if match:
            return int(match.group(1))
    return None
