from collections.abc import Sequence

from src.domain.entities import User
from src.rules.models import Rules


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def check_permission(self, user: User | None, user_roles: Sequence[str], action: str) -> bool:
        """
        Check if the user/role is allowed to perform the action.

        Order of precedence:
        1. Public permissions (global)
        2. Role-based access control, with ``*`` and scoped ``orders:*`` wildcards
        """
        if action in self.rules.rbac.public_permissions:
            return True

        if not user or user.status != "active":
            return False

        for role in user_roles:
            allowed_actions = self.rules.rbac.roles.get(role, [])
            if "*" in allowed_actions:
                return True
            if action in allowed_actions:
                return True

            # Scoped wildcards ("orders:*" matches "orders:update")
            if ":" in action:
                scope = action.split(":")[0]
                if f"{scope}:*" in allowed_actions:
                    return True

        return False

    def can(self, user: User | None, action: str) -> bool:
        return self.check_permission(user, user.roles if user else [], action)

    def permissions_for(self, roles: Sequence[str]) -> list[str]:
        granted: set[str] = set()
        for role in roles:
            granted.update(self.rules.rbac.roles.get(role, []))
        return sorted(granted)
