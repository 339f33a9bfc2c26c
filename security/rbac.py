from services.errors import Forbidden
from utils.roles import ADMIN, SUPER_ADMIN, normalize_role

def has_role(actor, role_name: str) -> bool:
    if actor is None:
        return False
    return normalize_role(actor.role) == role_name

def can_manage_turf(actor, turf) -> bool:
    """Turf's owning admin, or any super-admin."""
    if has_role(actor, SUPER_ADMIN):
        return True
    return has_role(actor, ADMIN) and turf.admin_id == actor.user_id

def can_cancel_booking(actor, booking) -> bool:
    """Booking's own user, the admin owning its turf, or a super-admin."""
    if actor is None:
        return False
    if booking.user_id == actor.user_id:
        return True
    return can_manage_turf(actor, booking.turf)

def require_turf_manager(actor, turf):
    if not can_manage_turf(actor, turf):
        raise Forbidden("You can only manage your own turfs")

def require_roles(actor, *role_names: str):
    """
    Usage: require_roles(actor, "ADMIN")
    """
    if actor is None:
        raise Forbidden("Authentication required")
    if has_role(actor, SUPER_ADMIN):
        return
    if normalize_role(actor.role) not in set(role_names):
        raise Forbidden()
