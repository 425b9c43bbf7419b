from __future__ import annotations

from datetime import datetime


def format_semester_label(semester) -> str:
    # "Fall 2025" style label, falls back to the stored name
    if semester is None:
        return "Unknown semester"
    if semester.term and semester.academic_year:
        return f"{semester.term} {semester.academic_year}"
    return semester.name


def window_open(start: datetime | None, end: datetime | None, now: datetime) -> bool:
    # Both bounds are inclusive; a missing bound means the window is closed.
    if start is None or end is None:
        return False
    return start <= now <= end


def registration_open(semester, now: datetime) -> bool:
    return window_open(semester.registration_start_date, semester.registration_end_date, now)


def add_drop_open(semester, now: datetime) -> bool:
    return window_open(semester.add_drop_start_date, semester.add_drop_end_date, now)
