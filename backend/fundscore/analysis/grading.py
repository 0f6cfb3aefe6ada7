"""Shared grading utilities for converting blended scores to grades, classifications and recommendations."""

# (min score, grade, classification, recommendation), evaluated top-down.
GRADE_BUCKETS: list[tuple[float, str, str, str]] = [
    (95, "A+", "Excellent", "STRONG BUY"),
    (90, "A", "Excellent", "STRONG BUY"),
    (85, "A-", "Very Good", "BUY"),
    (80, "B+", "Very Good", "BUY"),
    (75, "B", "Good", "BUY"),
    (70, "B-", "Good", "HOLD"),
    (65, "C+", "Fair", "HOLD"),
    (60, "C", "Fair", "HOLD"),
    (50, "C-", "Fair", "SELL"),
    (30, "D", "Weak", "SELL"),
    (0, "F", "Very Weak", "STRONG SELL"),
]


def grade_score(score: float) -> tuple[str, str, str]:
    """Map a 0-100 score to (grade, classification, recommendation)."""
    for threshold, grade, classification, recommendation in GRADE_BUCKETS:
        if score >= threshold:
            return grade, classification, recommendation
    _, grade, classification, recommendation = GRADE_BUCKETS[-1]
    return grade, classification, recommendation


def score_to_grade(score: float) -> str:
    return grade_score(score)[0]


def score_to_signal(score: float) -> str:
    return grade_score(score)[2]


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))
