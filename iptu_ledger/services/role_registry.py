"""
RoleRegistry -- persistence for the admin and treasury singletons.

Responsibility:
    Bootstraps, reads and reassigns the two role holders.  Authorization
    decisions (who may call what) are made by AssessmentLedger; this
    service only stores who holds each role.

Invariants enforced:
    - Neither role is ever held by the null identity.
    - Roles are initialized exactly once.

Failure modes:
    - InvalidParamsError for null identities, and for a second
      ``initialize``.
    - RolesNotInitializedError when reading a role that was never set.
"""

from iptu_ledger.domain.identity import Identity, is_null_identity
from iptu_ledger.exceptions import InvalidParamsError, RolesNotInitializedError
from iptu_ledger.logging_config import get_logger
from iptu_ledger.models.role import LedgerRole, LedgerRoleName
from iptu_ledger.services.base import BaseService

logger = get_logger("services.role_registry")


class RoleRegistry(BaseService):
    """Admin/treasury role holders."""

    def is_initialized(self) -> bool:
        return all(
            self.session.get(LedgerRole, role.value) is not None
            for role in LedgerRoleName
        )

    def initialize(self, admin: str, treasury: str) -> None:
        """
        Set the initial admin and treasury.

        Raises:
            InvalidParamsError: null identity, or roles already initialized.
        """
        if is_null_identity(admin):
            raise InvalidParamsError("admin", "must not be the null identity")
        if is_null_identity(treasury):
            raise InvalidParamsError("treasury", "must not be the null identity")
        if any(self.session.get(LedgerRole, role.value) is not None for role in LedgerRoleName):
            raise InvalidParamsError("roles", "ledger roles are already initialized")

        self.session.add(LedgerRole(role=LedgerRoleName.ADMIN.value, holder=admin))
        self.session.add(LedgerRole(role=LedgerRoleName.TREASURY.value, holder=treasury))
        self.session.flush()

        logger.info(
            "ledger_roles_initialized",
            extra={"admin": admin, "treasury": treasury},
        )

    def _get(self, role: LedgerRoleName) -> LedgerRole:
        row = self.session.get(LedgerRole, role.value)
        if row is None:
            raise RolesNotInitializedError(role.value)
        return row

    def holder(self, role: LedgerRoleName) -> Identity:
        """
        Current holder of ``role``.

        Raises:
            RolesNotInitializedError: if the role was never set.
        """
        return Identity(self._get(role).holder)

    def assign(self, role: LedgerRoleName, identity: str) -> Identity:
        """
        Hand ``role`` to ``identity``.

        Returns:
            The previous holder.
        """
        if is_null_identity(identity):
            raise InvalidParamsError(role.value, "must not be the null identity")
        row = self._get(role)
        previous = Identity(row.holder)
        row.holder = identity
        self.session.flush()
        logger.info(
            "ledger_role_assigned",
            extra={"role": role.value, "old": previous, "new": identity},
        )
        return previous
