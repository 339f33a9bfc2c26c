from dataclasses import dataclass

PLAYER = "PLAYER"
ADMIN = "ADMIN"
SUPER_ADMIN = "SUPER_ADMIN"

ALLOWED_ROLES = {PLAYER, ADMIN, SUPER_ADMIN}


@dataclass(frozen=True)
class Actor:
    """Acting identity handed in by the (external) auth layer."""

    user_id: int
    role: str = PLAYER

    @property
    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN


def normalize_role(role) -> str:
    name = (role if isinstance(role, str) else getattr(role, "name", "") or "").strip().upper()
    # The older clients send USER for players
    if name == "USER":
        return PLAYER
    return name
