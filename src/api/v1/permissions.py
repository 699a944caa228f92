"""Custom DRF permissions for the CRM API."""
from rest_framework.permissions import SAFE_METHODS, BasePermission


def _role(user):
    return getattr(user, "role", None)


class HasWhitelabel(BasePermission):
    """Every tenant-scoped endpoint needs a user attached to a whitelabel."""

    message = "Votre compte n'est rattache a aucun whitelabel."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        whitelabel = getattr(user, "whitelabel", None)
        return bool(whitelabel and whitelabel.is_active)


class IsAdminOrManager(BasePermission):
    message = "Acces reserve aux administrateurs et managers."

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.user.is_superuser:
            return True
        return _role(request.user) in ("ADMIN", "MANAGER")


class CanEditCommissions(BasePermission):
    """Managers read the commission settings, only admins change them."""

    message = "Seul un administrateur peut modifier le parametrage des commissions."

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return bool(getattr(request.user, "can_view_commissions", False))
        return bool(getattr(request.user, "can_edit_commissions", False))
