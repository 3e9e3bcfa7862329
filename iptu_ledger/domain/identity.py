"""
Identity -- who is calling the ledger.

Responsibility:
    Defines the ``Identity`` value used for roles, taxpayers and payers, the
    null identity, and the ``CallerIdentity`` collaborator that every
    mutating ledger operation receives explicitly.

Architecture position:
    Ledger > Domain -- pure, zero I/O.  Authentication of the caller is the
    hosting environment's job; the ledger only compares identities.
"""

import re
from abc import ABC, abstractmethod
from typing import NewType

Identity = NewType("Identity", str)

NULL_IDENTITY = Identity("")

# 0x followed only by zeros, e.g. 0x0000000000000000000000000000000000000000
_ZERO_ADDRESS = re.compile(r"^0x0+$", re.IGNORECASE)


def is_null_identity(identity: str | None) -> bool:
    """
    True for identities that can never hold a role or owe tax.

    None, the empty/blank string, and an all-zero hex address are null.
    """
    if identity is None:
        return True
    stripped = identity.strip()
    return not stripped or bool(_ZERO_ADDRESS.match(stripped))


class CallerIdentity(ABC):
    """The invoking principal of the current operation."""

    @abstractmethod
    def current(self) -> Identity:
        """Return the identity of the caller."""
        ...


class StaticCaller(CallerIdentity):
    """A caller whose identity is fixed at construction."""

    def __init__(self, identity: str):
        self._identity = Identity(identity)

    def current(self) -> Identity:
        return self._identity

    def __repr__(self) -> str:
        return f"StaticCaller({self._identity!r})"
