"""
Module: iptu_ledger.models.role
Responsibility: ORM persistence for the two process-wide role singletons
    (admin and treasury).
Architecture position: Ledger > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one row per role (role name is the primary key).
    - The holder is never the null identity (validated by RoleRegistry).
"""

from enum import Enum

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from iptu_ledger.db.base import TrackedBase
from iptu_ledger.models.assessment import IDENTITY_LENGTH


class LedgerRoleName(str, Enum):
    """Roles recognised by the ledger."""

    ADMIN = "admin"  # Manages treasury, activation flags, admin transfer
    TREASURY = "treasury"  # Creates assessments, receives all forwarded funds


class LedgerRole(TrackedBase):
    """Current holder of a ledger role."""

    __tablename__ = "ledger_roles"

    role: Mapped[LedgerRoleName] = mapped_column(
        String(20),
        primary_key=True,
    )

    holder: Mapped[str] = mapped_column(
        String(IDENTITY_LENGTH),
        nullable=False,
    )

    def __repr__(self) -> str:
        role = self.role.value if isinstance(self.role, LedgerRoleName) else self.role
        return f"<LedgerRole {role}: {self.holder}>"
