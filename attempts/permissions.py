from rest_framework import permissions

class IsGraderOrAdmin(permissions.BasePermission):
    """
    Allows access to Admins, Instructors, and Graders.
    Strictly blocks Students.
    """
    def has_permission(self, request, view):
        # 1. User must be logged in
        if not request.user or not request.user.is_authenticated:
            return False

        # 2. Check Role
        return getattr(request.user, 'can_grade', False)


class IsInstructorOrAdmin(permissions.BasePermission):
    """Assessment authoring: instructors and staff only."""
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.is_staff or getattr(request.user, 'role', '') in ['instructor', 'admin']
