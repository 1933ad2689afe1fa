"""
Role-based permissions for back-office staff.

Each role carries a fixed set of permission strings. Endpoints declare the
permission they need with ``require_permission`` (see app.api.deps); admins
hold every permission.
"""

from app.models.user import StaffRole


class Permissions:
    """Permission strings checked by the API."""
    CV_VIEW = "cv.view"
    CV_CREATE = "cv.create"
    CV_UPDATE = "cv.update"
    CV_DELETE = "cv.delete"
    CV_EXPORT = "cv.export"
    APPLICATIONS_VIEW = "applications.view"
    APPLICATIONS_MANAGE = "applications.manage"
    PIPELINE_DELETE = "pipeline.delete"

    ALL = frozenset({
        CV_VIEW, CV_CREATE, CV_UPDATE, CV_DELETE, CV_EXPORT,
        APPLICATIONS_VIEW, APPLICATIONS_MANAGE, PIPELINE_DELETE,
    })


ROLE_PERMISSIONS: dict[StaffRole, frozenset[str]] = {
    StaffRole.ADMIN: Permissions.ALL,
    StaffRole.RECRUITER: frozenset({
        Permissions.CV_VIEW, Permissions.CV_CREATE, Permissions.CV_UPDATE,
        Permissions.CV_DELETE, Permissions.CV_EXPORT,
        Permissions.APPLICATIONS_VIEW, Permissions.APPLICATIONS_MANAGE,
    }),
    StaffRole.ACCOUNT_MANAGER: frozenset({Permissions.APPLICATIONS_VIEW}),
    StaffRole.MARKETING: frozenset(),
    StaffRole.CV_UPLOADER: frozenset({Permissions.CV_CREATE}),
    StaffRole.VIEWER: frozenset({Permissions.CV_VIEW}),
}


def has_permission(role: StaffRole, permission: str) -> bool:
    """
    Example:
        >>> has_permission(StaffRole.RECRUITER, "pipeline.delete")
        False
    """
    if role == StaffRole.ADMIN:
        return True
    return permission in ROLE_PERMISSIONS.get(role, frozenset())
