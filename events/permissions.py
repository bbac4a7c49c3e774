from rest_framework.permissions import BasePermission


def is_organizer(user) -> bool:
    """
    Staff, superusers and users with the organizer/admin role.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return bool(getattr(user, "is_organizer", False))


class IsOrganizer(BasePermission):
    """
    Event-wide read access (full registration lists) for organizers only.
    """
    message = "Only organizers can view this."

    def has_permission(self, request, view):
        return is_organizer(request.user)
