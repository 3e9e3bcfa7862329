"""
ValueTransfer -- moving funds out of ledger custody.

Responsibility:
    Defines the capability the ledger uses to forward payments and residual
    balances to the treasury, and an in-memory implementation for tests and
    local runs.

Architecture position:
    Ledger > Domain.  Real implementations live in the hosting environment
    (payment rail, bank API, chain transfer).

Contract:
    ``send`` is atomic from the ledger's point of view: either ``to``
    receives exactly ``amount`` or ``ValueTransferError`` is raised and
    nothing moved.  ``send`` may call back into arbitrary code (the
    recipient), which is why AssessmentLedger guards against re-entry.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from iptu_ledger.domain.identity import Identity


class ValueTransferError(Exception):
    """Raised by a ValueTransfer when funds could not be moved."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


@dataclass(frozen=True)
class TransferReceipt:
    """Proof that ``amount`` reached ``to``."""

    to: Identity
    amount: int
    reference: str | None = None


class ValueTransfer(ABC):
    """Moves funds held in ledger custody to another account."""

    @abstractmethod
    def send(self, to: Identity, amount: int) -> TransferReceipt:
        """
        Transfer ``amount`` from custody to ``to``.

        Raises:
            ValueTransferError: if the transfer did not happen.
        """
        ...

    @abstractmethod
    def balance(self) -> int:
        """Funds currently held in ledger custody."""
        ...


class InMemoryValueTransfer(ValueTransfer):
    """
    Custody account kept in process memory.

    Custody starts empty.  Funds arrive either through ``deposit`` (a direct
    transfer outside the payment path) or through ``attached`` (the value
    carried by a payment call).  ``on_send`` runs inside ``send`` before
    funds move, the way a recipient's callback would.
    """

    def __init__(self, on_send: Callable[[Identity, int], None] | None = None):
        self._custody = 0
        self._balances: dict[str, int] = defaultdict(int)
        self._sends: list[TransferReceipt] = []
        self._fail_reason: str | None = None
        self.on_send = on_send

    def send(self, to: Identity, amount: int) -> TransferReceipt:
        if self._fail_reason is not None:
            raise ValueTransferError(self._fail_reason)
        if amount <= 0:
            raise ValueTransferError(f"amount must be positive, got {amount}")
        if amount > self._custody:
            raise ValueTransferError(
                f"insufficient custody balance: {self._custody} < {amount}"
            )
        if self.on_send is not None:
            self.on_send(to, amount)
        self._custody -= amount
        self._balances[to] += amount
        receipt = TransferReceipt(to=to, amount=amount, reference=f"mem-{len(self._sends) + 1}")
        self._sends.append(receipt)
        return receipt

    def balance(self) -> int:
        return self._custody

    def deposit(self, amount: int) -> None:
        """Funds arriving in custody outside the normal payment path."""
        if amount <= 0:
            raise ValueError("deposit amount must be positive")
        self._custody += amount

    @contextmanager
    def attached(self, amount: int) -> Iterator[None]:
        """
        Hold ``amount`` in custody for the duration of a payment call.

        If the call raises, whatever part of ``amount`` is still in custody
        is returned to the payer.
        """
        custody_before = self._custody
        self._custody += amount
        try:
            yield
        except BaseException:
            self._custody = max(custody_before, self._custody - amount)
            raise

    def fail_next_sends(self, reason: str = "transfer rejected") -> None:
        """Make every subsequent ``send`` fail until ``restore`` is called."""
        self._fail_reason = reason

    def restore(self) -> None:
        self._fail_reason = None

    def balance_of(self, identity: str) -> int:
        return self._balances.get(identity, 0)

    @property
    def sends(self) -> list[TransferReceipt]:
        return list(self._sends)
