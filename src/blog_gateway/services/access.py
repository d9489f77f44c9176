"""Role and ownership checks applied before a route does any work."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from blog_gateway.core.errors import AuthenticationRequired, AuthorizationDenied
from blog_gateway.core.settings import settings
from blog_gateway.schemas.principal import Principal

OwnerLookup = Callable[[], str | None]


class Policy(str, Enum):
    """Minimum requirement a route places on the caller."""

    PUBLIC = "none"
    AUTHENTICATED = "authenticated"
    ADMIN_OR_OWNER = "admin-or-owner"
    ADMIN_ONLY = "admin-only"
    OWNER_ONLY = "owner-only"
    # Resource owner, or a privileged role without looking the resource up.
    SELF_OR_PRIVILEGED = "self-or-privileged"
    # Resource owner only; privileged roles get no bypass.
    SELF_ONLY = "self-only"


def _role_allows(principal: Principal, policy: Policy) -> bool:
    if policy is Policy.AUTHENTICATED:
        return True
    if policy in (Policy.ADMIN_OR_OWNER, Policy.SELF_OR_PRIVILEGED):
        return principal.role in settings.privileged_roles
    if policy is Policy.ADMIN_ONLY:
        return principal.role == settings.admin_role
    if policy is Policy.OWNER_ONLY:
        return principal.role == settings.owner_role
    return False


def authorize(
    principal: Principal | None,
    policy: Policy,
    owner_lookup: OwnerLookup | None = None,
) -> Principal | None:
    """Check ``principal`` against ``policy``.

    ``owner_lookup`` is only called for ownership policies and only when the
    caller's role is not enough on its own, so privileged callers never
    trigger a read of the target resource.

    Raises:
        AuthenticationRequired: The policy needs a principal and there is none
        AuthorizationDenied: The principal fails the role or ownership check
    """
    if policy is Policy.PUBLIC:
        return principal
    if principal is None:
        raise AuthenticationRequired()
    if _role_allows(principal, policy):
        return principal

    if policy in (Policy.SELF_OR_PRIVILEGED, Policy.SELF_ONLY) and owner_lookup is not None:
        owner_id = owner_lookup()
        if owner_id is not None and owner_id == principal.id:
            return principal

    raise AuthorizationDenied()
