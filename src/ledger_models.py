from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ledger_state import LedgerState

DECIMAL_PLACES = 4
AMOUNT_QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)
# Sums of 2**32 amounts this size still fit the default 28-digit decimal context
MAX_AMOUNT = Decimal(10**14) - AMOUNT_QUANTUM


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeStatus(Enum):
    UNDISPUTED = "undisputed"
    DISPUTED = "disputed"


class RejectReason(Enum):
    MISSING_AMOUNT = "missing_amount"
    NEGATIVE_AMOUNT = "negative_amount"
    AMOUNT_TOO_LARGE = "amount_too_large"
    DUPLICATE_TRANSACTION_ID = "duplicate_transaction_id"
    ACCOUNT_LOCKED = "account_locked"
    UNKNOWN_CLIENT = "unknown_client"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    NOT_DISPUTABLE = "not_disputable"
    CLIENT_MISMATCH = "client_mismatch"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def charge_back(self, amount: Decimal) -> None:
        """Remove held funds and freeze the account for good."""
        self.held -= amount
        self.locked = True


@dataclass(frozen=True)
class RetainedTransaction:
    """
    What the ledger remembers about an applied deposit or withdrawal.
    Withdrawals are kept only so their ids cannot be reused.
    """

    transaction_id: int
    client_id: int
    transaction_type: TransactionType
    amount: Decimal
    status: DisputeStatus = DisputeStatus.UNDISPUTED

    @property
    def is_disputable(self) -> bool:
        return self.transaction_type == TransactionType.DEPOSIT

    @property
    def is_disputed(self) -> bool:
        return self.status == DisputeStatus.DISPUTED


class AccountSnapshot(NamedTuple):
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    @classmethod
    def from_account(cls, account: ClientAccount) -> "AccountSnapshot":
        return cls(
            client_id=account.client_id,
            available=account.available.quantize(AMOUNT_QUANTUM),
            held=account.held.quantize(AMOUNT_QUANTUM),
            total=account.total.quantize(AMOUNT_QUANTUM),
            locked=account.locked,
        )


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of one transition: the resulting state and, if dropped, why."""

    state: "LedgerState"
    reason: Optional[RejectReason] = None

    @property
    def applied(self) -> bool:
        return self.reason is None
