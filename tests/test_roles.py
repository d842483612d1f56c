"""Test role normalization and guards."""

import asyncio

import pytest

from nurserydb.auth import Identity
from nurserydb.errors import AuthenticationMissing, AuthorizationDenied
from nurserydb.roles import (
    ADMIN_ONLY,
    ANY_AUTHENTICATED,
    ENGINEER_ONLY,
    MANAGER_OR_ENGINEER,
    STAFF_ONLY,
    Guard,
    Role,
    has_any_role,
    has_role,
    normalize_role,
    require_any_role,
    require_role,
    requires,
)


def _ident(*roles: str) -> Identity:
    return Identity(subject="u1", email=None, roles=roles)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("admin", "manager"),
        ("Admin ", "manager"),
        ("engineer", "agriculture_engineer"),
        ("agricultural_engineer", "agriculture_engineer"),
        ("delivery", "delivery_company"),
        ("Customer", "customer"),
        (Role.SUPPLIER, "supplier"),
        (None, None),
    ],
)
def test_normalize_role(raw, expected):
    assert normalize_role(raw) == expected


def test_has_role_via_alias():
    assert has_role(_ident("admin"), Role.MANAGER)
    assert has_role(_ident("manager"), "admin")
    assert not has_role(_ident("customer"), Role.MANAGER)
    assert not has_role(None, Role.MANAGER)


def test_has_any_role():
    assert has_any_role(_ident("customer", "employee"), [Role.MANAGER, Role.EMPLOYEE])
    assert not has_any_role(_ident("customer"), [Role.MANAGER, Role.EMPLOYEE])


def test_require_role_messages():
    with pytest.raises(AuthenticationMissing):
        require_role(None, Role.MANAGER)
    with pytest.raises(AuthorizationDenied) as exc_info:
        require_role(_ident("customer"), Role.MANAGER)
    assert exc_info.value.message == "Access denied. Required role: manager"
    assert exc_info.value.status_code == 403


def test_require_any_role_message():
    with pytest.raises(AuthorizationDenied) as exc_info:
        require_any_role(_ident("customer"), [Role.MANAGER, Role.EMPLOYEE])
    assert exc_info.value.message == "Access denied. Required roles: manager or employee"


def test_require_role_returns_identity():
    ident = _ident("engineer")
    assert require_role(ident, Role.AGRICULTURE_ENGINEER) is ident


class TestGuards:
    def test_admin_only(self):
        assert ADMIN_ONLY.allows(_ident("admin"))
        assert not ADMIN_ONLY.allows(_ident("employee"))

    def test_staff_only(self):
        assert STAFF_ONLY.allows(_ident("employee"))
        assert STAFF_ONLY.allows(_ident("manager"))
        with pytest.raises(AuthorizationDenied):
            STAFF_ONLY(_ident("customer"))

    def test_engineer_guards(self):
        assert ENGINEER_ONLY.allows(_ident("agricultural_engineer"))
        assert MANAGER_OR_ENGINEER.allows(_ident("engineer"))
        assert not MANAGER_OR_ENGINEER.allows(_ident("supplier"))

    def test_any_authenticated(self):
        assert ANY_AUTHENTICATED(_ident("customer")).subject == "u1"
        with pytest.raises(AuthenticationMissing):
            ANY_AUTHENTICATED(None)
        assert not ANY_AUTHENTICATED.allows(None)

    def test_name(self):
        assert Guard(Role.MANAGER, Role.EMPLOYEE).name == "manager or employee"
        assert repr(ANY_AUTHENTICATED) == "Guard(authenticated)"


def test_requires_decorator():
    @requires(ADMIN_ONLY)
    async def approve(order_id: int, *, identity: Identity) -> str:
        return f"approved {order_id} by {identity.subject}"

    assert asyncio.run(approve(5, identity=_ident("manager"))) == "approved 5 by u1"
    with pytest.raises(AuthorizationDenied):
        asyncio.run(approve(5, identity=_ident("customer")))
    with pytest.raises(AuthenticationMissing):
        asyncio.run(approve(5, identity=None))
