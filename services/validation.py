# services/validation.py

from __future__ import annotations
import math
from typing import Dict, Iterable, List, Optional


def _safe_float(val) -> Optional[float]:
    try:
        if val is None:
            return None
        out = float(val)
    except (TypeError, ValueError):
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def validate_score_entries(entries: Iterable, assessments: Dict[int, object]) -> List[str]:
    """
    Validate a grade sheet BEFORE anything is written.
    Returns a list of readable problems. Empty list => safe to save.

    Expected entry attributes (ScoreEntry):
      - registration_id: int
      - assessment_id: int
      - score: number | None   (None clears a stored score, always valid)

    `assessments` maps assessment id -> Assessment (needs .name and .max_score).
    Unknown assessment ids are reported by the caller, not here.
    """
    problems: List[str] = []

    for entry in entries:
        if entry.score is None:
            continue

        assessment = assessments.get(entry.assessment_id)
        if assessment is None:
            continue

        score = _safe_float(entry.score)
        if score is None:
            problems.append(
                f'Score for "{assessment.name}" (registration {entry.registration_id}) is not a number.'
            )
            continue

        # Rule: 0 <= score <= max_score, never clamped
        if score < 0 or score > assessment.max_score:
            problems.append(
                f'Score {score:g} for "{assessment.name}" (registration {entry.registration_id}) '
                f"must be between 0 and {assessment.max_score:g}."
            )

    return problems


def validate_final_grades(entries: Iterable, letter_grades: Iterable[str]) -> List[str]:
    """Check caller-computed (percentage, letter) pairs for range and vocabulary."""
    problems: List[str] = []
    allowed = set(letter_grades)

    for entry in entries:
        if entry.overall_percentage is not None:
            pct = _safe_float(entry.overall_percentage)
            if pct is None or pct < 0 or pct > 100:
                problems.append(
                    f"Overall percentage {entry.overall_percentage!r} for registration "
                    f"{entry.registration_id} must be between 0 and 100."
                )

        letter = entry.final_letter_grade
        if letter is not None and letter not in allowed:
            problems.append(f'Letter grade "{letter}" for registration {entry.registration_id} is not a valid grade.')

    return problems


def validate_max_score(max_score) -> List[str]:
    value = _safe_float(max_score)
    if value is None:
        return ["Max score must be a number."]
    if value <= 0:
        return ["Max score must be positive."]
    return []
