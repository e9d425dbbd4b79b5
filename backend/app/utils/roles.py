from fastapi import Depends

from .dependencies import get_current_user
from .error_handlers import ForbiddenError, to_http_exception

HR_ROLES = {"admin", "hr", "recruiter"}


def _role_required(*allowed_roles: str):
    allowed = set(allowed_roles)
    label = "/".join(sorted(allowed))

    def check_role(user=Depends(get_current_user)):
        if user.get("role") not in allowed:
            raise to_http_exception(ForbiddenError(f"{label.capitalize()} access only"))
        return user
    return check_role


hr_only = _role_required(*HR_ROLES)
admin_only = _role_required("admin")
