"""Target-store models for synchronized roster entities."""

from roster_kernel.models.course import CourseModel
from roster_kernel.models.enrollment import EnrollmentModel
from roster_kernel.models.organization import OrganizationModel
from roster_kernel.models.setting import SyncSettingModel
from roster_kernel.models.user import UserModel

__all__ = [
    "OrganizationModel",
    "UserModel",
    "CourseModel",
    "EnrollmentModel",
    "SyncSettingModel",
]
