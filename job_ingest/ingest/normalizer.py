"""Map scraped rows of any shape onto the canonical job record.

Every canonical field is resolved from an ordered list of source key aliases
(``FIELD_ALIASES``). The first alias holding a usable value wins. Supporting a
new scraper export means extending the table, not adding branches.
"""

import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Optional

from job_ingest.utils.text_processing import strip_html

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("job_title", "title", "Title", "jobtitle", "position", "Job Title"),
    "company": (
        "company_name", "company/name", "company", "Company", "companyName",
        "employer", "Organization",
    ),
    "location": (
        "location", "location/linkedinText", "location/parsed/text",
        "location/parsed/city", "Location", "city", "City",
    ),
    "url": (
        "job_url", "apply_url", "linkedinUrl", "applyMethod/companyApplyUrl",
        "easyApplyUrl", "url", "URL", "link", "Job URL",
    ),
    "source_job_id": ("job_id", "jobId", "source_job_id", "id"),
    "description": (
        "description_html", "description_text", "descriptionHtml",
        "descriptionText", "description", "job_description", "jd", "jd_clean",
        "Description",
    ),
    "salary_min": ("salary/min", "salaryMin", "salary_min", "Salary Min"),
    "salary_max": ("salary/max", "salaryMax", "salary_max", "Salary Max"),
    "job_type": ("employmentType", "employment_type", "job_type", "jobType", "Job Type"),
    "remote_type": ("workplaceType", "remote_type", "workRemoteAllowed", "Remote"),
    "source": ("source", "Source"),
}

# Keys are lower-cased with spaces/hyphens folded to "_"
JOB_TYPES = {
    "full_time": "full-time",
    "fulltime": "full-time",
    "part_time": "part-time",
    "parttime": "part-time",
    "contract": "contract",
    "contractor": "contract",
    "temporary": "temporary",
    "internship": "internship",
    "volunteer": "volunteer",
}

REMOTE_TYPES = {
    "remote": "remote",
    "on_site": "on-site",
    "onsite": "on-site",
    "hybrid": "hybrid",
}

MISSING_SENTINELS = {"None"}
NO_REMOTE_INFO = {"none", "false"}

_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_TYPE_SEPARATORS = re.compile(r"[\s-]+")


@dataclass
class CanonicalJob:
    """Source-agnostic job record produced by normalization."""

    source: str
    title: str
    company: str
    source_job_id: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    jd_raw: Optional[str] = None
    jd_clean: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    job_type: Optional[str] = None
    remote_type: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _lookup(row: Mapping, key: str) -> Any:
    """Flat key first, then a slash path into nested objects ("company/name")."""
    if key in row:
        return row[key]
    if "/" not in key:
        return None
    node: Any = row
    for part in key.split("/"):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (Mapping, list, tuple, set)):
        return ""
    if isinstance(value, bool):
        # Match the JSON spelling so "true"/"false" sentinels behave the same for bools
        return "true" if value else "false"
    text = str(value).strip()
    if text in MISSING_SENTINELS:
        return ""
    return text


def pick(row: Mapping, aliases: tuple[str, ...]) -> str:
    """Return the first alias with a non-empty, non-sentinel value, trimmed, or ""."""
    for key in aliases:
        text = _as_text(_lookup(row, key))
        if text:
            return text
    return ""


def resolve(row: Mapping, field_name: str) -> str:
    return pick(row, FIELD_ALIASES[field_name])


def parse_salary(raw: str) -> float | None:
    """Keep digits and dots, read the leading number. Unparsable -> None."""
    cleaned = re.sub(r"[^0-9.]", "", raw or "")
    match = _NUMBER.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def _type_key(raw: str) -> str:
    return _TYPE_SEPARATORS.sub("_", raw.lower())


def normalize_job_type(raw: str) -> str | None:
    """Canonical employment type; unknown values pass through unchanged."""
    if not raw:
        return None
    return JOB_TYPES.get(_type_key(raw), raw)


def normalize_remote_type(raw: str) -> str | None:
    """Canonical workplace type; "None"/"false" mean no information, "true" means remote."""
    if not raw or raw.lower() in NO_REMOTE_INFO:
        return None
    if raw.lower() == "true":
        return "remote"
    return REMOTE_TYPES.get(_type_key(raw), raw)


def clean_description(jd_raw: str) -> str:
    if jd_raw.lstrip().startswith("<"):
        return strip_html(jd_raw)
    return jd_raw


def normalize_row(row: Any, default_source: str = "linkedin") -> CanonicalJob | None:
    """Normalize one raw row, or return None when title or company cannot be resolved."""
    if not isinstance(row, Mapping):
        return None

    title = resolve(row, "title")
    company = resolve(row, "company")
    if not title or not company:
        return None

    jd_raw = resolve(row, "description")
    jd_clean = clean_description(jd_raw) if jd_raw else ""

    return CanonicalJob(
        source=resolve(row, "source") or default_source,
        source_job_id=resolve(row, "source_job_id") or None,
        title=title,
        company=company,
        location=resolve(row, "location") or None,
        url=resolve(row, "url") or None,
        jd_raw=jd_raw or None,
        jd_clean=jd_clean or None,
        salary_min=parse_salary(resolve(row, "salary_min")),
        salary_max=parse_salary(resolve(row, "salary_max")),
        job_type=normalize_job_type(resolve(row, "job_type")),
        remote_type=normalize_remote_type(resolve(row, "remote_type")),
    )
