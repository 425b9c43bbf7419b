# Import every model so db.create_all() sees the full schema
from models.user import User, Role  # noqa: F401
from models.department import Department  # noqa: F401
from models.course import Course  # noqa: F401
from models.prerequisite import Prerequisite  # noqa: F401
from models.semester import Semester  # noqa: F401
from models.section import Section  # noqa: F401
from models.registration import Registration  # noqa: F401
from models.assessment import Assessment, AssessmentScore  # noqa: F401
