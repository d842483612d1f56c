"""Role-based access control: role normalization and guards."""

from __future__ import annotations

import enum
import functools
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from nurserydb.auth import Identity
from nurserydb.errors import AuthenticationMissing, AuthorizationDenied


class Role(enum.Enum):
    MANAGER = "manager"
    EMPLOYEE = "employee"
    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    AGRICULTURE_ENGINEER = "agriculture_engineer"
    DELIVERY_COMPANY = "delivery_company"


# Spellings used by the frontend and by older tokens.
ROLE_ALIASES: dict[str, str] = {
    "admin": Role.MANAGER.value,
    "engineer": Role.AGRICULTURE_ENGINEER.value,
    "agricultural_engineer": Role.AGRICULTURE_ENGINEER.value,
    "delivery": Role.DELIVERY_COMPANY.value,
}


def normalize_role(role: Role | str | None) -> str | None:
    if role is None:
        return None
    if isinstance(role, Role):
        return role.value
    lower = role.strip().lower()
    return ROLE_ALIASES.get(lower, lower)


def has_role(identity: Identity | None, role: Role | str) -> bool:
    if identity is None or not identity.roles:
        return False
    wanted = normalize_role(role)
    return any(normalize_role(r) == wanted for r in identity.roles)


def has_any_role(identity: Identity | None, roles: Iterable[Role | str]) -> bool:
    return any(has_role(identity, role) for role in roles)


def _role_name(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else role


def require_role(identity: Identity | None, role: Role | str) -> Identity:
    if identity is None:
        raise AuthenticationMissing()
    if not has_role(identity, role):
        raise AuthorizationDenied(f"Access denied. Required role: {_role_name(role)}")
    return identity


def require_any_role(identity: Identity | None, roles: Iterable[Role | str]) -> Identity:
    roles = list(roles)
    if identity is None:
        raise AuthenticationMissing()
    if not has_any_role(identity, roles):
        names = " or ".join(_role_name(r) for r in roles)
        raise AuthorizationDenied(f"Access denied. Required roles: {names}")
    return identity


class Guard:
    """A reusable any-of role requirement.

    ``Guard()`` with no roles only requires an authenticated identity.
    """

    def __init__(self, *roles: Role | str, name: str | None = None) -> None:
        self.roles = roles
        self.name = name or " or ".join(_role_name(r) for r in roles) or "authenticated"

    def allows(self, identity: Identity | None) -> bool:
        if identity is None:
            return False
        return not self.roles or has_any_role(identity, self.roles)

    def __call__(self, identity: Identity | None) -> Identity:
        if identity is None:
            raise AuthenticationMissing()
        if not self.roles:
            return identity
        if len(self.roles) == 1:
            return require_role(identity, self.roles[0])
        return require_any_role(identity, self.roles)

    def __repr__(self) -> str:
        return f"Guard({self.name})"


ADMIN_ONLY = Guard(Role.MANAGER)
STAFF_ONLY = Guard(Role.MANAGER, Role.EMPLOYEE)
CUSTOMER_ONLY = Guard(Role.CUSTOMER)
ENGINEER_ONLY = Guard(Role.AGRICULTURE_ENGINEER)
SUPPLIER_ONLY = Guard(Role.SUPPLIER)
DELIVERY_ONLY = Guard(Role.DELIVERY_COMPANY)
MANAGER_OR_ENGINEER = Guard(Role.MANAGER, Role.AGRICULTURE_ENGINEER)
ANY_AUTHENTICATED = Guard()

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def requires(guard: Guard) -> Callable[[F], F]:
    """Run ``guard`` on the handler's ``identity`` keyword before the body."""

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            guard(kwargs.get("identity"))
            return await fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
