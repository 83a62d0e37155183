"""Fit-score tiers shared by match storage and apply-eligibility checks.

Three gates: a score is stored as a match at SCORE_MIN_STORED, allows applying
with caution at SCORE_APPLY_CAUTION, and allows applying outright at
SCORE_APPLY_OK. Scores in [50, 75) are visible matches that cannot be applied to.
"""

SCORE_APPLY_OK = 82
SCORE_APPLY_CAUTION = 75
SCORE_MIN_STORED = 50

TIER_OK = "ok"
TIER_CAUTION = "caution"
TIER_BLOCKED = "blocked"

_LABELS = {
    TIER_OK: "Strong match - apply",
    TIER_CAUTION: "Moderate match - apply with caution",
    TIER_BLOCKED: "Below threshold - cannot apply",
}


def tier(score: float) -> str:
    if score >= SCORE_APPLY_OK:
        return TIER_OK
    if score >= SCORE_APPLY_CAUTION:
        return TIER_CAUTION
    return TIER_BLOCKED


def can_apply(score: float) -> bool:
    return score >= SCORE_APPLY_CAUTION


def should_store(score: float) -> bool:
    return score >= SCORE_MIN_STORED


def score_label(score: float) -> str:
    """Human-readable tier label for badges and tooltips."""
    return _LABELS[tier(score)]
