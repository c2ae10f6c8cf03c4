from rest_framework import permissions


class IsExaminerOrAdmin(permissions.BasePermission):
    """
    Exam authoring: examiners, admins and staff.
    Candidates are refused.
    """
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.can_author_exams)


class IsAdminRole(permissions.BasePermission):
    """Platform administration (audit trail)."""
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_platform_admin)
