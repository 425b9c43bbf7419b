"""
Named failures raised by the registrar services.

Every precondition violation is raised before any write as one of these, so
callers can show a specific message. `PersistenceFailure` is the only error
raised once a transaction has started writing.
"""

from typing import Any, Dict, List, Optional


class RegistrarError(Exception):
    """Base class for all expected, caller-recoverable registrar failures."""

    status_code = 400
    default_code = "registrar_error"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


# Enrollment ledger

class AlreadyRegistered(RegistrarError):
    status_code = 409
    default_code = "already_registered"


class AlreadyCompleted(RegistrarError):
    status_code = 409
    default_code = "already_completed"


class PrerequisiteNotMet(RegistrarError):
    status_code = 422
    default_code = "prerequisite_not_met"

    def __init__(self, missing_codes: List[str]):
        self.missing_codes = list(missing_codes)
        super().__init__(
            "Missing prerequisites: " + ", ".join(self.missing_codes),
            details={"missing": self.missing_codes},
        )


class SectionFull(RegistrarError):
    status_code = 409
    default_code = "section_full"


class RegistrationClosed(RegistrarError):
    status_code = 422
    default_code = "registration_closed"


class NotRegistered(RegistrarError):
    status_code = 409
    default_code = "not_registered"


# Grade aggregator

class ScoreOutOfRange(RegistrarError):
    status_code = 422
    default_code = "score_out_of_range"

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems), details={"problems": self.problems})


class InvalidFinalGrade(RegistrarError):
    status_code = 422
    default_code = "invalid_final_grade"


# Lookups

class NotFound(RegistrarError):
    status_code = 404
    default_code = "not_found"


class SectionNotFound(NotFound):
    default_code = "section_not_found"


class SemesterNotFound(NotFound):
    default_code = "semester_not_found"


class RegistrationNotFound(NotFound):
    default_code = "registration_not_found"


class AssessmentNotFound(NotFound):
    default_code = "assessment_not_found"


# Boundaries

class NotAuthorized(RegistrarError):
    status_code = 403
    default_code = "not_authorized"


class DependencyConflict(RegistrarError):
    status_code = 409
    default_code = "dependency_conflict"


class PersistenceFailure(RegistrarError):
    status_code = 500
    default_code = "persistence_failure"


class InvalidAssessment(RegistrarError):
    status_code = 422
    default_code = "invalid_assessment"
