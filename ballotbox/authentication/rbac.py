# ballotbox/authentication/rbac.py

from enum import Enum
from functools import wraps
from flask import session, jsonify
import logging

logger = logging.getLogger(__name__)

# Admin permission sets. Each admin account carries its own list; the role
# defaults below apply when an account stores none.


class AdminRole(Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"


class Permission(Enum):
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    RESET = "reset"
    EXPORT = "export"
    AUDIT = "audit"


DEFAULT_PERMISSIONS = [Permission.VIEW, Permission.EDIT, Permission.DELETE, Permission.RESET]

# Role -> Permissions mapping
ROLE_PERMISSIONS = {
    AdminRole.SUPER_ADMIN: list(Permission),
    AdminRole.ADMIN: DEFAULT_PERMISSIONS,
}


class RBACService:
    def effective_permissions(self, admin_profile):
        stored = (admin_profile or {}).get('permissions') or []
        if stored:
            return [Permission(p) for p in stored if p in Permission._value2member_map_]
        try:
            role = AdminRole((admin_profile or {}).get('role'))
        except ValueError:
            return list(DEFAULT_PERMISSIONS)
        return list(ROLE_PERMISSIONS.get(role, DEFAULT_PERMISSIONS))

    def has_permission(self, admin_profile, permission):
        if isinstance(permission, str):
            permission = Permission(permission)
        return permission in self.effective_permissions(admin_profile)


rbac_service = RBACService()


# Decorator for required permission on admin routes
def require_permission(permission):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            admin = session.get('admin')
            if not admin:
                return jsonify({'error': 'Admin login required'}), 401
            if not rbac_service.has_permission(admin, permission):
                logger.warning(f"Admin {admin.get('username')} denied {permission.value}")
                return jsonify({'error': 'Forbidden'}), 403
            return func(*args, **kwargs)
        return wrapper
    return decorator
