from rest_framework.permissions import BasePermission


# ---- Helper functions -------------------------------------------------


def has_role(user, role) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return getattr(user, "role", None) == role


# ---- Permission classes -----------------------------------------------


class IsStudent(BasePermission):
    """
    Route-level gate for actions only students perform
    (creating/editing projects and logbook entries).
    Ownership is still checked by the services.
    """
    message = "Only students can perform this action."

    def has_permission(self, request, view):
        return has_role(request.user, "student")


class IsMentor(BasePermission):
    """
    Route-level gate for mentor-only actions (publish, validate).
    """
    message = "Only mentor teachers can perform this action."

    def has_permission(self, request, view):
        return has_role(request.user, "mentor")
