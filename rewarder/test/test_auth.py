import pytest

from rewarder.auth import Role, RoleRegistry, require
from rewarder.errors import LastAdminError, NotAuthorizedError


def test_deployer_is_admin(db, admin, ADDRESSES):
    registry = RoleRegistry(db, admin)
    assert registry.has_role(Role.ADMIN, admin)
    assert registry.has_role(Role.ADMIN, admin.lower())
    assert not registry.has_role(Role.ADMIN, ADDRESSES[0])
    assert not registry.has_role(Role.FEEDER, admin)

    # a second registry over the same database keeps the original admin
    again = RoleRegistry(db, ADDRESSES[0])
    assert again.members(Role.ADMIN) == [admin]


def test_grant_and_revoke(auth, admin, feeder, ADDRESSES):
    assert auth.has_role(Role.FEEDER, feeder)

    auth.grant_role(admin, Role.FEEDER, ADDRESSES[0])
    assert set(auth.members(Role.FEEDER)) == {feeder, ADDRESSES[0]}

    auth.revoke_role(admin, Role.FEEDER, feeder)
    assert not auth.has_role(Role.FEEDER, feeder)


def test_only_admin_manages_roles(auth, feeder, ADDRESSES):
    with pytest.raises(NotAuthorizedError):
        auth.grant_role(feeder, Role.ADMIN, feeder)
    with pytest.raises(NotAuthorizedError):
        auth.revoke_role(ADDRESSES[0], Role.FEEDER, feeder)
    assert not auth.has_role(Role.ADMIN, feeder)
    assert auth.has_role(Role.FEEDER, feeder)


def test_last_admin(auth, admin, ADDRESSES):
    with pytest.raises(LastAdminError):
        auth.revoke_role(admin, Role.ADMIN, admin)

    auth.grant_role(admin, Role.ADMIN, ADDRESSES[0])
    auth.revoke_role(ADDRESSES[0], Role.ADMIN, admin)
    assert auth.members(Role.ADMIN) == [ADDRESSES[0]]


def test_require(auth, admin, feeder):
    assert require(auth, Role.ADMIN, admin.lower()) == admin
    with pytest.raises(NotAuthorizedError):
        require(auth, Role.ADMIN, feeder)


def test_role_events(auth, admin, feeder, distributor):
    granted = distributor.events("RoleGranted")
    assert granted[0].data == {"role": "feeder", "account": feeder}
