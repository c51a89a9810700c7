import logging
from enum import Enum
from typing import Protocol

from rewarder.errors import LastAdminError, NotAuthorizedError
from rewarder.models import Event, checksum
from rewarder.storage import DB
from rewarder.storage import access as storage
from rewarder.storage.events import append_event

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """
    :role ADMIN: configures the distributor, funds epochs and manages roles
    :role FEEDER: opens, populates, seals and aborts reports
    """

    ADMIN = "admin"
    FEEDER = "feeder"


class AuthorizationPolicy(Protocol):
    """Consulted before every mutating call. May be backed by a remote policy service."""

    def has_role(self, role: Role, account: str) -> bool:
        ...


def require(policy: AuthorizationPolicy, role: Role, sender: str) -> str:
    """Raise unless `sender` holds `role`, returns the checksummed sender"""
    sender = checksum(sender)
    if not policy.has_role(role, sender):
        raise NotAuthorizedError(f"{sender} is missing the {role.value} role")
    return sender


class RoleRegistry:
    """
    In-process authorization policy stored alongside the rest of the state.
    The deployer is the first admin.
    """

    def __init__(self, db: DB, admin: str):
        self.db = db
        admin = checksum(admin)
        if not storage.members(db, Role.ADMIN.value):
            storage.add_role(db, Role.ADMIN.value, admin)

    def has_role(self, role: Role, account: str) -> bool:
        return storage.has_role(self.db, Role(role).value, checksum(account))

    def members(self, role: Role) -> list[str]:
        return storage.members(self.db, Role(role).value)

    def grant_role(self, sender: str, role: Role, account: str) -> None:
        with self.db.atomic():
            require(self, Role.ADMIN, sender)
            account = checksum(account)
            storage.add_role(self.db, Role(role).value, account)
            append_event(
                self.db,
                Event(name="RoleGranted", data={"role": role.value, "account": account}),
            )
        logger.info(f"Granted {role.value} to {account}")

    def revoke_role(self, sender: str, role: Role, account: str) -> None:
        with self.db.atomic():
            require(self, Role.ADMIN, sender)
            account = checksum(account)
            if role == Role.ADMIN and self.members(Role.ADMIN) == [account]:
                raise LastAdminError("Cannot revoke the last admin")
            storage.remove_role(self.db, Role(role).value, account)
            append_event(
                self.db,
                Event(name="RoleRevoked", data={"role": role.value, "account": account}),
            )
        logger.info(f"Revoked {role.value} from {account}")
